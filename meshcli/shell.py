import os
from typing import Optional


class Shell:
    """
    Access to the parts of the user's environment the CLI depends on.
    """

    def home_dir(self) -> str:
        raise NotImplementedError

    def getenv(self, name: str) -> Optional[str]:
        raise NotImplementedError


class UnixShell(Shell):
    def home_dir(self) -> str:
        return os.path.expanduser("~")

    def getenv(self, name: str) -> Optional[str]:
        return os.environ.get(name)
