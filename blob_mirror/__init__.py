"""Mirror Azure Blob Storage containers into local directory trees.

The package exposes the mirror runner used by the ``mirror_app`` command line
together with its configuration and storage helpers.
"""

from .mirror import (  # noqa: F401
    UnsafeBlobPathError,
    local_path_for,
    mirror_blob,
    mirror_container,
)
from .mirror_types import MirrorRun, MirrorSettings  # noqa: F401
from .settings import (  # noqa: F401
    ConfigurationError,
    EnvironmentSettingsProvider,
    PromptSettingsProvider,
    SettingsProvider,
    normalize_connection_string,
)
from .storage import ContainerNotFoundError, create_service_client  # noqa: F401
