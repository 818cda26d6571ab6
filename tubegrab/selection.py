import logging

from tubegrab.catalog import format_catalog

AUDIO_SUFFIX = "+bestaudio"


def best_video(ranked):
    """First ranked video stream with a non-zero score, or None."""
    for stream, breakdown, _rank in ranked:
        if breakdown.total > 0 and not stream.is_audio_only:
            return stream
    return None


def auto_selection(ranked):
    stream = best_video(ranked)
    if stream is None:
        return None
    return f"{stream.id}{AUDIO_SUFFIX}"


def expand_explicit(expression):
    """A bare numeric id gets the audio half appended; compound expressions pass through."""
    expression = (expression or "").strip()
    if expression.isdigit():
        return f"{expression}{AUDIO_SUFFIX}"
    return expression


def resolve_selection(explicit, ranked, default_format):
    if explicit and explicit.strip():
        return expand_explicit(explicit)
    selection = auto_selection(ranked or [])
    if selection:
        return selection
    logging.warning("No scored video streams available; using default format %s", default_format)
    return default_format


def prompt_selection(ranked, default_format, *, input_func=input, output=print):
    """Show the table and ask for a stream id. Enter keeps the automatic pick."""
    automatic = resolve_selection(None, ranked, default_format)
    best = best_video(ranked)
    output(format_catalog(ranked, selected_id=best.id if best else None))
    output("")
    try:
        answer = input_func(f"Stream id or selection expression [{automatic}]: ")
    except EOFError:
        answer = ""
    answer = (answer or "").strip()
    if not answer:
        return automatic
    return expand_explicit(answer)
