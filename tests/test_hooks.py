import unittest
from unittest.mock import MagicMock, patch

from pkgsmith.errors import CommandError, HookError
from pkgsmith.hooks import HookRunner
from pkgsmith.recipe import Recipe, ShellHook


class TestHookRunner(unittest.TestCase):

    def _recipe(self, **hooks):
        return Recipe(name="hello", version="2.12", source_url="https://example.org/hello.tar.gz", **hooks)

    def test_undefined_hook_is_noop(self):
        runner = HookRunner(self._recipe())
        self.assertIsNone(runner.run("pre_fetch"))
        self.assertIsNone(runner.run("post_build", "/tmp/src"))

    def test_callable_hook_receives_arguments(self):
        post_extract = MagicMock()
        HookRunner(self._recipe(post_extract=post_extract)).run("post_extract", "/tmp/src")
        post_extract.assert_called_once_with("/tmp/src")

    def test_unknown_hook_name(self):
        with self.assertRaises(ValueError):
            HookRunner(self._recipe()).run("post_install")

    def test_callable_failure_becomes_hook_error(self):
        pre_build = MagicMock(side_effect=RuntimeError("boom"))
        with self.assertRaises(HookError) as cm:
            HookRunner(self._recipe(pre_build=pre_build)).run("pre_build", "/tmp/src")
        self.assertIn("pre_build", str(cm.exception))
        self.assertIsInstance(cm.exception.__cause__, RuntimeError)

    @patch("pkgsmith.recipe.run_checked")
    def test_shell_hook_gets_build_environment(self, mock_run_checked):
        hook = ShellHook("post_build", "echo $NAME")
        env = {"NAME": "hello", "WORK": "/tmp/work"}

        HookRunner(self._recipe(post_build=hook), env).run("post_build", "/tmp/src")

        args, kwargs = mock_run_checked.call_args
        self.assertEqual(args[0], ["bash", "-euo", "pipefail", "-c", "echo $NAME"])
        self.assertEqual(kwargs["cwd"], "/tmp/src")
        self.assertEqual(kwargs["env"]["NAME"], "hello")
        self.assertEqual(kwargs["env"]["SRCDIR"], "/tmp/src")

    @patch("pkgsmith.recipe.run_checked", side_effect=CommandError(["bash"], 2))
    def test_shell_hook_failure(self, mock_run_checked):
        hook = ShellHook("pre_fetch", "exit 2")
        with self.assertRaises(HookError):
            HookRunner(self._recipe(pre_fetch=hook), {"WORK": "/tmp/work"}).run("pre_fetch")
        self.assertEqual(mock_run_checked.call_args.kwargs["cwd"], "/tmp/work")


if __name__ == '__main__':
    unittest.main()
