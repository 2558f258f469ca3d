# ============================================================================
# UTILITIES - Shared helpers, constants, and configurations
# ============================================================================

import logging
import os
import shutil
import subprocess
from typing import Optional

from .errors import TransportError

logger = logging.getLogger(__name__)

# ============================================================================
# CONSTANTS - Azure Resource Manager
# ============================================================================

MANAGEMENT_RESOURCE = "https://management.azure.com"

# Both schedule-instance endpoints and the request endpoint share one version
PIM_API_VERSION = "2020-10-01"

ELIGIBLE_INSTANCES_URL = (
    f"{MANAGEMENT_RESOURCE}/providers/Microsoft.Authorization/roleEligibilityScheduleInstances"
    f"?api-version={PIM_API_VERSION}&$filter=asTarget()"
)

ACTIVE_INSTANCES_URL = (
    f"{MANAGEMENT_RESOURCE}/providers/Microsoft.Authorization/roleAssignmentScheduleInstances"
    f"?api-version={PIM_API_VERSION}&$filter=asTarget()"
)

# Response statuses that mean Azure accepted the activation request
STATUS_TOKENS = ["Provisioned", "PendingApproval", "Accepted", "ScheduleCreated"]

# Substrings of an az error that mean the role is already active
ALREADY_ACTIVE_MARKERS = ["RoleAssignmentExists", "already exists"]

DEFAULT_DURATION_HOURS = 8

# ============================================================================
# CONFIGURATION CONSTANTS
# ============================================================================

CONFIG_FILE_NAME = ".pim-me-mcp.json"
CONFIG_KEY = "quickRoles"

ENV_QUICK_ROLES = "PIM_QUICK_ROLES"
ENV_QUICK_ROLES_DESC = "PIM_QUICK_ROLES_DESC"
ENV_DEFAULT_JUSTIFICATION = "PIM_DEFAULT_JUSTIFICATION"
ENV_LOG_LEVEL = "PIM_ME_LOG_LEVEL"
ENV_COMMAND_TIMEOUT = "PIM_ME_COMMAND_TIMEOUT"

DEFAULT_COMMAND_TIMEOUT = 600

# ============================================================================
# CONSTANTS - Error Detection
# ============================================================================

# Azure error codes seen on PIM calls, with a hint for the user
AZURE_ERROR_PATTERNS = {
    "AuthorizationFailed": "You don't have permission for this operation. Run 'az login' to refresh your credentials.",
    "InvalidAuthenticationToken": "Your Azure token is invalid or expired. Run 'az login' and try again.",
    "RoleAssignmentExists": "The role is already active for this scope.",
    "RoleAssignmentRequestPolicyValidationFailed": "The request violates the role's PIM policy (check MFA or ticket requirements).",
    "ExpirationRule": "The requested duration exceeds the maximum allowed by the role's PIM policy.",
    "JustificationRule": "The role's PIM policy rejected the justification.",
}

# ============================================================================
# HELPER FUNCTIONS - Command Execution
# ============================================================================

def _detect_azure_error(output: str) -> Optional[str]:
    """Returns a hint for the first known Azure error code found in the output."""
    for error_code, hint in AZURE_ERROR_PATTERNS.items():
        if error_code in output:
            return f"{error_code}: {hint}"
    return None


def get_command_timeout() -> int:
    """Reads the per-command timeout in seconds from the environment."""
    raw = os.environ.get(ENV_COMMAND_TIMEOUT, "")
    try:
        timeout = int(raw)
    except ValueError:
        return DEFAULT_COMMAND_TIMEOUT
    return timeout if timeout > 0 else DEFAULT_COMMAND_TIMEOUT


def run_command(command: list[str]) -> str:
    """Runs a command without a shell and returns stdout; raises TransportError on failure."""
    timeout = get_command_timeout()
    try:
        result = subprocess.run(
            command,
            shell=False,
            capture_output=True,
            text=True,
            encoding='utf-8',
            check=False,
            stdin=subprocess.DEVNULL,
            timeout=timeout
        )
    except subprocess.TimeoutExpired as e:
        raise TransportError(f"Command timed out after {timeout} seconds: {' '.join(command[:3])}") from e
    except OSError as e:
        raise TransportError(f"Could not run '{command[0]}': {e}") from e
    except UnicodeDecodeError as e:
        raise TransportError(f"Output of '{' '.join(command[:3])}' is not valid UTF-8: {e}") from e

    stderr = (result.stderr or "").strip()

    if result.returncode != 0:
        parts = [f"Azure CLI error (exit code {result.returncode})"]
        if stderr:
            parts.append(stderr)
        azure_error = _detect_azure_error(f"{result.stdout or ''}\n{stderr}")
        if azure_error:
            parts.append(azure_error)
        raise TransportError("\n".join(parts))

    if stderr:
        # az prints deprecation and preview notices as WARNING lines
        if all(line.startswith("WARNING") for line in stderr.splitlines() if line.strip()):
            logger.debug("Azure CLI stderr: %s", stderr)
        else:
            logger.warning("Azure CLI stderr: %s", stderr)

    return result.stdout or ""


def run_az(args: list[str]) -> str:
    """Runs an az CLI command; `args` excludes the executable."""
    # az is a .cmd shim on Windows, so resolve it explicitly
    az_executable = shutil.which("az") or "az"
    return run_command([az_executable, *args])
