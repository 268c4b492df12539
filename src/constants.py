"""Constants used in the project."""

from enum import Enum


class ExitCodes(Enum):
    """Exit codes for the program.

    Args:
        Enum (int): Exit codes for the program.
    """

    SUCCESS = 0
    CONNECTION_ERROR = 2
    FILE_ERROR = 1
    EXIT_WARNINGS = 3


class PackageManagers(Enum):
    """Package managers supported by the program.

    Args:
        Enum (string): Package managers supported by the program.
    """

    NPM = "npm"
    NUGET = "nuget"
    DUB = "dub"
    PUB = "pub"


class Constants:  # pylint: disable=too-few-public-methods
    """General constants used in the project.
    Data holder for configuration constants; not intended to provide behavior.
    """

    REGISTRY_URL_NPM = "https://registry.npmjs.org"
    REGISTRY_URL_NUGET_V3 = "https://api.nuget.org/v3/index.json"
    REGISTRY_URL_DUB = "https://code.dlang.org/api/packages"
    REGISTRY_URL_PUB = "https://pub.dev"
    SUPPORTED_PACKAGES = [
        PackageManagers.NPM.value,
        PackageManagers.NUGET.value,
        PackageManagers.DUB.value,
        PackageManagers.PUB.value,
    ]
    DUB_SELECTIONS_FILE = "dub.selections.json"
    LOG_FORMAT = "[%(levelname)s] %(message)s"
    LOG_LEVEL_ENV = "VERLENS_LOG_LEVEL"
    TOKEN_ENV_TEMPLATE = "VERLENS_{ecosystem}_TOKEN"
    REQUEST_TIMEOUT = 30  # Timeout in seconds for all HTTP requests
    HTTP_CACHE_TTL_SEC = 300
    HTTP_CACHE_MAX_ENTRIES = 1000
    USER_AGENT = "verlens/0.1"
