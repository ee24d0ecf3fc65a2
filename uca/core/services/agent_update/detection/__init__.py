"""
L3 Detection — ``__init__.py`` re-exports the environment probe.

Read-only: these modules run probe commands but never change anything.
"""

from uca.core.services.agent_update.detection.environment import (  # noqa: F401
    EnvironmentProbe,
    same_path,
)
from uca.core.services.agent_update.detection.package_lists import (  # noqa: F401
    parse_extension_list,
    parse_npm_list_json,
    parse_package_from_token,
    parse_package_list_output,
    parse_pnpm_list_json,
    parse_uv_tool_list,
)
