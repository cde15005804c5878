"""
Per-vendor lookup tables consumed by the expect engine.

Path: oltshell/core/vendor_tables.py

Prompt patterns, pager-disable commands and CLI error substrings live in one
read-only VendorTables object built once at startup and handed to each
ExpectSession. Tests inject their own tables with synthetic vendors.

Tables can be extended from YAML:

    prompts:
      acme: '[\\w\\-]+\\$\\s*$'
    pager_commands:
      acme: 'no page'
    error_patterns:
      - 'rejected'
    privileged_pager_vendors:
      - acme
"""

import logging
import re
from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType
from typing import Dict, FrozenSet, Iterable, Mapping, Optional, Pattern, Tuple, Union

import yaml


logger = logging.getLogger(__name__)

# hostname#, hostname>, [config]#, hostname(config)#
DEFAULT_PROMPT = r"[\w\-\[\]()]+[#>]\s*$"

# Cisco-style prompt with optional mode: hostname>, hostname#, hostname(config-if)#
_CISCO_STYLE = r"[\w\-]+(\([\w\-/:]+\))?[#>]\s*$"

DEFAULT_PROMPTS: Dict[str, str] = {
    # <hostname> and [hostname] from VRP-style shells, plus MA5800-X7# style
    "huawei": r"(<[\w\-]+>|\[[\w\-~/]+\]|[\w\-]+(\([\w\-/:]+\))?[#>])\s*$",
    "vsol": _CISCO_STYLE,
    "cdata": _CISCO_STYLE,
    "zte": r"(<[\w\-]+>|\[[\w\-~]+\]|[\w\-]+(\([\w\-/:]+\))?[#>])\s*$",
    "cisco": _CISCO_STYLE,
    "fiberhome": _CISCO_STYLE,
}

DEFAULT_PAGER_COMMAND = "terminal length 0"

DEFAULT_PAGER_COMMANDS: Dict[str, str] = {
    "huawei": "screen-length 0 temporary",
    "vsol": "terminal length 0",
    "cdata": "terminal length 0",
    "zte": "screen-length 0 temporary",
    "cisco": "terminal length 0",
}

DEFAULT_ERROR_PATTERNS: Tuple[str, ...] = (
    "command not found",
    "% unknown command",
    "% invalid",
    "% incomplete command",
    "syntax error",
    "unrecognized command",
    "bad command",
)

# Vendors that only accept the pager command after privilege escalation
DEFAULT_PRIVILEGED_PAGER_VENDORS: FrozenSet[str] = frozenset({"vsol"})

LOGIN_PROMPT = r"(Login|Username)\s*:\s*$"
PASSWORD_PROMPT = r"Password\s*:\s*$"


def compile_prompt(pattern: Union[str, Pattern]) -> Pattern:
    """Compile a prompt pattern with line anchors enabled."""
    if isinstance(pattern, re.Pattern):
        return pattern
    return re.compile(pattern, re.MULTILINE)


@dataclass(frozen=True)
class VendorTables:
    """Read-only vendor lookup tables. Vendor keys are lower-case."""

    prompts: Mapping[str, Pattern] = field(default_factory=dict)
    pager_commands: Mapping[str, str] = field(default_factory=dict)
    error_patterns: Tuple[str, ...] = DEFAULT_ERROR_PATTERNS
    privileged_pager_vendors: FrozenSet[str] = DEFAULT_PRIVILEGED_PAGER_VENDORS
    default_prompt: Pattern = field(default_factory=lambda: compile_prompt(DEFAULT_PROMPT))
    default_pager_command: str = DEFAULT_PAGER_COMMAND
    login_prompt: Pattern = field(default_factory=lambda: re.compile(LOGIN_PROMPT, re.IGNORECASE | re.MULTILINE))
    password_prompt: Pattern = field(default_factory=lambda: re.compile(PASSWORD_PROMPT, re.IGNORECASE | re.MULTILINE))

    @classmethod
    def build(
        cls,
        prompts: Optional[Mapping[str, Union[str, Pattern]]] = None,
        pager_commands: Optional[Mapping[str, str]] = None,
        error_patterns: Optional[Iterable[str]] = None,
        privileged_pager_vendors: Optional[Iterable[str]] = None,
    ) -> "VendorTables":
        """Build tables from plain mappings, normalizing keys and compiling patterns."""
        compiled = {k.lower(): compile_prompt(v) for k, v in (prompts or {}).items()}
        pagers = {k.lower(): v for k, v in (pager_commands or {}).items()}
        errors = tuple(p.lower() for p in (error_patterns if error_patterns is not None else DEFAULT_ERROR_PATTERNS))
        privileged = frozenset(v.lower() for v in (privileged_pager_vendors
                                                   if privileged_pager_vendors is not None
                                                   else DEFAULT_PRIVILEGED_PAGER_VENDORS))
        return cls(
            prompts=MappingProxyType(compiled),
            pager_commands=MappingProxyType(pagers),
            error_patterns=errors,
            privileged_pager_vendors=privileged,
        )

    @classmethod
    def default(cls) -> "VendorTables":
        return cls.build(DEFAULT_PROMPTS, DEFAULT_PAGER_COMMANDS)

    @classmethod
    def from_yaml(cls, path: Path) -> "VendorTables":
        """
        Load tables from YAML, merged over the built-in defaults.

        Args:
            path: YAML file with any of the keys prompts, pager_commands,
                  error_patterns, privileged_pager_vendors.

        Returns:
            VendorTables with file values taking precedence.
        """
        path = Path(path).expanduser()
        try:
            with open(path) as f:
                data = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ValueError(f"Invalid vendor tables YAML in {path}: {e}")

        prompts = dict(DEFAULT_PROMPTS)
        prompts.update(data.get("prompts") or {})

        pagers = dict(DEFAULT_PAGER_COMMANDS)
        pagers.update(data.get("pager_commands") or {})

        errors = list(DEFAULT_ERROR_PATTERNS)
        for pattern in data.get("error_patterns") or []:
            if pattern.lower() not in errors:
                errors.append(pattern.lower())

        privileged = set(DEFAULT_PRIVILEGED_PAGER_VENDORS)
        privileged.update(data.get("privileged_pager_vendors") or [])

        logger.debug(f"Loaded vendor tables from {path}: {len(prompts)} prompt patterns")
        return cls.build(prompts, pagers, errors, privileged)

    def prompt_for(self, vendor: str) -> Pattern:
        """Prompt pattern for a vendor, or the generic fallback."""
        return self.prompts.get((vendor or "").lower(), self.default_prompt)

    def pager_command_for(self, vendor: str) -> str:
        return self.pager_commands.get((vendor or "").lower(), self.default_pager_command)

    def requires_privileged_pager(self, vendor: str) -> bool:
        return (vendor or "").lower() in self.privileged_pager_vendors

    def find_error(self, output: str) -> Optional[str]:
        """Return the first error substring present in output (case-insensitive)."""
        lowered = output.lower()
        for pattern in self.error_patterns:
            if pattern in lowered:
                return pattern
        return None


_default_tables: Optional[VendorTables] = None


def get_default_tables() -> VendorTables:
    """Shared default tables, built on first use."""
    global _default_tables
    if _default_tables is None:
        _default_tables = VendorTables.default()
    return _default_tables
