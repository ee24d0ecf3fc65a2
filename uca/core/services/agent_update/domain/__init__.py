"""
L1 Domain — ``__init__.py`` re-exports all pure domain functions.

These functions have NO subprocess calls, NO filesystem access,
NO network calls. Pure input→output.
"""

from uca.core.services.agent_update.domain.batching import (  # noqa: F401
    build_tasks,
    node_batch_command,
)
from uca.core.services.agent_update.domain.classification import (  # noqa: F401
    classify_failure,
    describe_failure,
    is_npm_global_mutate,
    should_retry_npm,
)
from uca.core.services.agent_update.domain.npm_rename import (  # noqa: F401
    extract_npm_rename_paths,
    is_safe_npm_rename_target,
)
from uca.core.services.agent_update.domain.versions import (  # noqa: F401
    extract_version_token,
    format_version_with_token,
    is_version_only_line,
    parse_version_output,
    safe_version,
)
