import unittest
from unittest import mock

from tubegrab.errors import MissingPrerequisite
from tubegrab.runtime import check_prerequisites, normalize_js_runtime, resolve_js_runtime

_TOOLS = {"ffmpeg": "/usr/bin/ffmpeg", "deno": "/opt/deno/bin/deno", "node": "/usr/bin/node"}


def _which(available):
    return lambda name: available.get(name)


class RuntimeTests(unittest.TestCase):
    def test_normalize_keeps_explicit_pairs(self):
        self.assertEqual(normalize_js_runtime("node:/usr/local/bin/node"), "node:/usr/local/bin/node")
        self.assertIsNone(normalize_js_runtime(""))

    def test_normalize_resolves_binary_names(self):
        with mock.patch("tubegrab.runtime.shutil.which", _which(_TOOLS)):
            self.assertEqual(normalize_js_runtime("deno"), "deno:/opt/deno/bin/deno")
            self.assertEqual(normalize_js_runtime("node"), "node:/usr/bin/node")
            self.assertIsNone(normalize_js_runtime("bun"))

    @mock.patch.dict("os.environ", {}, clear=True)
    def test_resolve_prefers_deno_then_node(self):
        with mock.patch("tubegrab.runtime.shutil.which", _which(_TOOLS)):
            self.assertEqual(resolve_js_runtime(), "deno:/opt/deno/bin/deno")
        with mock.patch("tubegrab.runtime.shutil.which", _which({"node": "/usr/bin/node"})):
            self.assertEqual(resolve_js_runtime(), "node:/usr/bin/node")
        with mock.patch("tubegrab.runtime.shutil.which", _which({})):
            self.assertIsNone(resolve_js_runtime())

    @mock.patch.dict("os.environ", {"TUBEGRAB_JS_RUNTIME": "node:/srv/node"}, clear=True)
    def test_resolve_honours_env(self):
        with mock.patch("tubegrab.runtime.shutil.which", _which(_TOOLS)):
            self.assertEqual(resolve_js_runtime(), "node:/srv/node")
            self.assertEqual(resolve_js_runtime("deno"), "deno:/opt/deno/bin/deno")

    @mock.patch.dict("os.environ", {}, clear=True)
    def test_check_prerequisites(self):
        with mock.patch("tubegrab.runtime.shutil.which", _which(_TOOLS)):
            self.assertEqual(check_prerequisites(), "deno:/opt/deno/bin/deno")

        with mock.patch("tubegrab.runtime.shutil.which", _which({"deno": "/opt/deno/bin/deno"})):
            with self.assertRaises(MissingPrerequisite) as ctx:
                check_prerequisites()
        self.assertIn("ffmpeg", str(ctx.exception))
        self.assertTrue(ctx.exception.remedy)

        with mock.patch("tubegrab.runtime.shutil.which", _which({"ffmpeg": "/usr/bin/ffmpeg"})):
            with self.assertRaises(MissingPrerequisite) as ctx:
                check_prerequisites()
        self.assertIn("deno", ctx.exception.remedy)


if __name__ == "__main__":
    unittest.main()
