from .build import build
from .build_install import build_install
from .doctor import doctor
from .install_bin import install_bin
from .version import version

__all__ = ["build", "build_install", "doctor", "install_bin", "version"]
