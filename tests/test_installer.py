import io
import os
import shutil
import tarfile
import tempfile
import time
import unittest
from unittest.mock import patch

from pkgsmith import installer
from pkgsmith.errors import MissingPackageError, ToolNotInstalledError, UnsafeArchiveError, UnsupportedArchiveError


class TestInstallPackage(unittest.TestCase):

    def setUp(self):
        self.tmp = tempfile.mkdtemp()
        self.root = os.path.join(self.tmp, "root")

    def tearDown(self):
        shutil.rmtree(self.tmp)

    def _package(self, name, members):
        path = os.path.join(self.tmp, name)
        with tarfile.open(path, "w:gz") as tar:
            for member_name, data in members:
                info = tarfile.TarInfo(member_name)
                info.size = len(data)
                info.mode = 0o755
                tar.addfile(info, io.BytesIO(data))
        return path

    def test_install_creates_root(self):
        path = self._package("hello-2.12-x86_64.tar.gz", [
            ("usr/bin/hello", b"#!/bin/sh\necho hello\n"),
            (".META", b"name=hello\nversion=2.12\nbuilt_at=2024-01-01T00:00:00Z\n"),
        ])

        metadata = installer.install_package(path, self.root)

        hello = os.path.join(self.root, "usr", "bin", "hello")
        self.assertTrue(os.access(hello, os.X_OK))
        self.assertEqual(metadata["version"], "2.12")
        self.assertEqual(os.listdir(self.root), ["usr"])

    def test_install_overwrites_existing_files(self):
        os.makedirs(os.path.join(self.root, "etc"))
        with open(os.path.join(self.root, "etc", "conf"), "w") as f:
            f.write("old")
        path = self._package("conf-1-x86_64.tar.gz", [("etc/conf", b"new")])

        self.assertEqual(installer.install_package(path, self.root), {})

        with open(os.path.join(self.root, "etc", "conf")) as f:
            self.assertEqual(f.read(), "new")

    def test_missing_package(self):
        with self.assertRaises(MissingPackageError):
            installer.install_package(os.path.join(self.tmp, "absent.tar.gz"), self.root)

    def test_unsupported_suffix(self):
        path = os.path.join(self.tmp, "hello.rpm")
        open(path, "wb").close()
        with self.assertRaises(UnsupportedArchiveError):
            installer.install_package(path, self.root)

    def test_escaping_member_is_rejected(self):
        path = self._package("evil-1-x86_64.tar.gz", [("../../etc/passwd", b"x")])
        with self.assertRaises(UnsafeArchiveError):
            installer.install_package(path, self.root)

    @patch("pkgsmith.installer.require_command", side_effect=ToolNotInstalledError("zstd"))
    def test_zstd_package_without_zstd(self, mock_require):
        path = os.path.join(self.tmp, "hello-2.12-x86_64.tar.zst")
        open(path, "wb").close()
        with self.assertRaises(ToolNotInstalledError):
            installer.install_package(path, self.root)


class TestLatestPackage(unittest.TestCase):

    def setUp(self):
        self.tmp = tempfile.mkdtemp()

    def tearDown(self):
        shutil.rmtree(self.tmp)

    def _touch(self, name, age):
        path = os.path.join(self.tmp, name)
        open(path, "wb").close()
        stamp = time.time() - age
        os.utime(path, (stamp, stamp))
        return path

    def test_newest_package_wins(self):
        self._touch("hello-2.11-x86_64.tar.gz", 100)
        newest = self._touch("hello-2.12-x86_64.tar.zst", 10)
        self._touch("zlib-1.3-x86_64.tar.zst", 1)

        self.assertEqual(installer.latest_package(self.tmp, "hello"), newest)

    def test_version_excludes_longer_names(self):
        own = self._touch("gcc-13.2-x86_64.tar.zst", 100)
        self._touch("gcc-libs-1.0-x86_64.tar.zst", 1)

        self.assertEqual(installer.latest_package(self.tmp, "gcc", "13.2"), own)

    def test_version_not_built(self):
        self._touch("gcc-libs-1.0-x86_64.tar.zst", 1)
        with self.assertRaises(MissingPackageError):
            installer.latest_package(self.tmp, "gcc", "13.2")

    def test_without_name(self):
        self._touch("hello-2.12-x86_64.tar.zst", 10)
        newest = self._touch("zlib-1.3-x86_64.tar.gz", 1)
        self.assertEqual(installer.latest_package(self.tmp), newest)

    def test_no_package(self):
        self._touch("notes.txt", 1)
        with self.assertRaises(MissingPackageError):
            installer.latest_package(self.tmp, "hello")


class TestCheckEnvironment(unittest.TestCase):

    @patch("pkgsmith.installer.command_exists", return_value=True)
    def test_all_tools_present(self, mock_exists):
        self.assertTrue(installer.check_environment())

    @patch("pkgsmith.installer.command_exists", side_effect=lambda tool: tool != "meson")
    def test_missing_optional_tool_is_a_warning(self, mock_exists):
        self.assertTrue(installer.check_environment())

    @patch("pkgsmith.installer.command_exists", side_effect=lambda tool: tool != "patch")
    def test_missing_required_tool(self, mock_exists):
        self.assertFalse(installer.check_environment())


if __name__ == '__main__':
    unittest.main()
