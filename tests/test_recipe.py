import os
import shutil
import tempfile
import unittest

from pkgsmith.context import BuildContext
from pkgsmith.errors import RecipeValidationError
from pkgsmith.recipe import Recipe, ShellHook, load_recipe, recipe_from_dict, validate_recipe

HELLO_RECIPE = """
name = "hello"
version = "2.12"
source_url = "https://ftp.gnu.org/gnu/hello/hello-${VERSION}.tar.gz"
patches = ["patches/$NAME-fix.patch", "https://example.org/${NAME}.diff"]
build_steps = ["./configure --prefix=$PREFIX", "make", "make DESTDIR=$DESTDIR install"]
patch_level = 0

[hooks]
post_build = "echo done"
"""


class TestValidateRecipe(unittest.TestCase):

    def test_valid_recipe(self):
        recipe = Recipe(name="hello", version="2.12", source_url="https://example.org/hello.tar.gz")
        self.assertIs(validate_recipe(recipe), recipe)

    def test_missing_name(self):
        with self.assertRaises(RecipeValidationError):
            validate_recipe(Recipe(name="", version="1", source_url="https://example.org/x.tar.gz"))

    def test_missing_version(self):
        with self.assertRaises(RecipeValidationError):
            validate_recipe(Recipe(name="x", version="  ", source_url="https://example.org/x.tar.gz"))

    def test_missing_source(self):
        with self.assertRaises(RecipeValidationError):
            validate_recipe(Recipe(name="x", version="1"))

    def test_both_sources(self):
        with self.assertRaises(RecipeValidationError):
            validate_recipe(Recipe(name="x", version="1", source_url="https://example.org/x.tar.gz",
                                   git_url="https://example.org/x.git"))

    def test_negative_patch_level(self):
        with self.assertRaises(RecipeValidationError):
            validate_recipe(Recipe(name="x", version="1", git_url="https://example.org/x.git", patch_level=-1))

    def test_non_callable_hook(self):
        with self.assertRaises(RecipeValidationError):
            validate_recipe(Recipe(name="x", version="1", git_url="https://example.org/x.git", pre_build="make"))


class TestRecipeDefaults(unittest.TestCase):

    def test_context_defaults_apply(self):
        context = BuildContext("/w", "/d", "/o", install_prefix="/usr", patch_level=1)
        recipe = Recipe(name="x", version="1", git_url="https://example.org/x.git")
        self.assertEqual(recipe.effective_prefix(context), "/usr")
        self.assertEqual(recipe.effective_patch_level(context), 1)

    def test_recipe_overrides(self):
        context = BuildContext("/w", "/d", "/o", install_prefix="/usr", patch_level=1)
        recipe = Recipe(name="x", version="1", git_url="https://example.org/x.git",
                        install_prefix="/opt/x", patch_level=0)
        self.assertEqual(recipe.effective_prefix(context), "/opt/x")
        self.assertEqual(recipe.effective_patch_level(context), 0)
        self.assertEqual(recipe.label, "x-1")


class TestLoadRecipe(unittest.TestCase):

    def setUp(self):
        self.tmp = tempfile.mkdtemp()

    def tearDown(self):
        shutil.rmtree(self.tmp)

    def _write(self, text, name="hello.toml"):
        path = os.path.join(self.tmp, name)
        with open(path, "w") as f:
            f.write(text)
        return path

    def test_load_recipe(self):
        recipe = load_recipe(self._write(HELLO_RECIPE))

        self.assertEqual(recipe.name, "hello")
        self.assertEqual(recipe.version, "2.12")
        self.assertEqual(recipe.source_url, "https://ftp.gnu.org/gnu/hello/hello-2.12.tar.gz")
        self.assertEqual(recipe.patch_sources, [
            os.path.join(self.tmp, "patches", "hello-fix.patch"),
            "https://example.org/hello.diff",
        ])
        self.assertEqual(recipe.build_steps[0], "./configure --prefix=$PREFIX")
        self.assertEqual(recipe.patch_level, 0)
        self.assertIsInstance(recipe.post_build, ShellHook)
        self.assertIsNone(recipe.pre_fetch)

    def test_git_table(self):
        recipe = recipe_from_dict({
            "name": "tool",
            "version": "1.0",
            "git": {"url": "https://example.org/tool.git", "ref": "v$VERSION", "dir": "tool-src"},
        })
        self.assertEqual(recipe.git_url, "https://example.org/tool.git")
        self.assertEqual(recipe.git_ref, "v1.0")
        self.assertEqual(recipe.git_dir, "tool-src")
        self.assertIsNone(recipe.source_url)

    def test_git_as_string(self):
        recipe = recipe_from_dict({"name": "tool", "version": "1.0", "git": "https://example.org/tool.git"})
        self.assertEqual(recipe.git_url, "https://example.org/tool.git")

    def test_unknown_hook(self):
        with self.assertRaises(RecipeValidationError):
            recipe_from_dict({"name": "x", "version": "1", "git": "https://example.org/x.git",
                              "hooks": {"post_install": "true"}})

    def test_missing_file(self):
        with self.assertRaises(RecipeValidationError):
            load_recipe(os.path.join(self.tmp, "absent.toml"))

    def test_invalid_toml(self):
        with self.assertRaises(RecipeValidationError):
            load_recipe(self._write("name = \n"))


if __name__ == '__main__':
    unittest.main()
