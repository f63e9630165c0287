"""
Template catalog: role → obligation templates.

The catalog is pure configuration. ``templates_for`` returns the baseline
templates every role receives, followed by the templates registered for the
exact role key. Unknown roles get the baseline only.
"""

from collections.abc import Iterable, Mapping
from datetime import date
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError as PydanticValidationError

from deadline_tracker.config import get_logger, get_settings
from deadline_tracker.core.entities.deadline import DeadlineCategory, RecurrencePattern
from deadline_tracker.core.entities.role_template import RoleTemplate, UserRole
from deadline_tracker.core.exceptions import ConfigurationError

logger = get_logger(__name__)


BASELINE_TEMPLATES: tuple[RoleTemplate, ...] = (
    RoleTemplate(
        title="GST Return Filing (GSTR-3B)",
        description="Monthly GST return filing",
        category=DeadlineCategory.TAX,
        days_ahead=7,
        is_recurring=True,
        recurrence_pattern=RecurrencePattern.MONTHLY,
    ),
    RoleTemplate(
        title="ITR Filing Deadline",
        description="Annual Income Tax Return filing",
        category=DeadlineCategory.TAX,
        specific_date=date(2024, 7, 31),
        is_recurring=True,
        recurrence_pattern=RecurrencePattern.YEARLY,
    ),
)

ROLE_TEMPLATES: dict[str, tuple[RoleTemplate, ...]] = {
    UserRole.STARTUP.value: (
        RoleTemplate(
            title="Annual Compliance (MCA)",
            description="File Annual Return and Financial Statements",
            category=DeadlineCategory.LEGAL,
            days_ahead=30,
            is_recurring=True,
            recurrence_pattern=RecurrencePattern.YEARLY,
        ),
        RoleTemplate(
            title="Board Meeting Minutes",
            description="Quarterly board meeting and minute filing",
            category=DeadlineCategory.LEGAL,
            days_ahead=14,
            is_recurring=True,
            recurrence_pattern=RecurrencePattern.QUARTERLY,
        ),
    ),
    UserRole.FREELANCER.value: (
        RoleTemplate(
            title="Quarterly TDS Return",
            description="TDS return filing for professional services",
            category=DeadlineCategory.TAX,
            days_ahead=21,
            is_recurring=True,
            recurrence_pattern=RecurrencePattern.QUARTERLY,
        ),
        RoleTemplate(
            title="Professional Tax Payment",
            description="Monthly professional tax payment",
            category=DeadlineCategory.TAX,
            days_ahead=5,
            is_recurring=True,
            recurrence_pattern=RecurrencePattern.MONTHLY,
        ),
    ),
    UserRole.SMALL_BUSINESS.value: (
        RoleTemplate(
            title="Audit Report Filing",
            description="Annual audit report submission",
            category=DeadlineCategory.LEGAL,
            days_ahead=45,
            is_recurring=True,
            recurrence_pattern=RecurrencePattern.YEARLY,
        ),
        RoleTemplate(
            title="ESI/EPF Compliance",
            description="Monthly ESI and EPF compliance filing",
            category=DeadlineCategory.LEGAL,
            days_ahead=10,
            is_recurring=True,
            recurrence_pattern=RecurrencePattern.MONTHLY,
        ),
    ),
}


def _role_key(role: UserRole | str | None) -> str | None:
    if role is None:
        return None
    if isinstance(role, UserRole):
        return role.value
    return str(role)


class TemplateCatalog:
    """Immutable mapping from role to an ordered list of templates."""

    def __init__(
        self,
        baseline: Iterable[RoleTemplate] = BASELINE_TEMPLATES,
        by_role: Mapping[str, Iterable[RoleTemplate]] | None = None,
    ):
        self._baseline = tuple(baseline)
        source = ROLE_TEMPLATES if by_role is None else by_role
        self._by_role = {key: tuple(templates) for key, templates in source.items()}

    def templates_for(self, role: UserRole | str | None) -> list[RoleTemplate]:
        """Baseline templates followed by the role's own templates."""
        key = _role_key(role)
        specific = self._by_role.get(key, ()) if key is not None else ()
        return [*self._baseline, *specific]

    @property
    def roles(self) -> list[str]:
        """Role keys that carry role-specific templates."""
        return sorted(self._by_role)

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "TemplateCatalog":
        """
        Build a catalog from plain data.

        Expected shape::

            baseline: [ {title: ..., days_ahead: 7, ...}, ... ]
            roles:
              startup: [ {...}, ... ]
        """
        if not isinstance(data, Mapping):
            raise ConfigurationError("Template catalog must be a mapping")

        try:
            baseline = [RoleTemplate(**item) for item in data.get("baseline") or []]
            roles = {
                str(role): [RoleTemplate(**item) for item in items or []]
                for role, items in (data.get("roles") or {}).items()
            }
        except (PydanticValidationError, TypeError, AttributeError) as e:
            raise ConfigurationError(
                f"Invalid template catalog: {e}",
                code="INVALID_CATALOG",
            ) from e

        return cls(baseline=baseline, by_role=roles)

    @classmethod
    def from_yaml(cls, path: Path) -> "TemplateCatalog":
        """Load a catalog from a YAML file."""
        try:
            with open(path, encoding="utf-8") as f:
                data = yaml.safe_load(f)
        except (OSError, yaml.YAMLError) as e:
            raise ConfigurationError(
                f"Cannot read template catalog {path}: {e}",
                code="INVALID_CATALOG",
                details={"path": str(path)},
            ) from e

        catalog = cls.from_mapping(data or {})
        logger.info(
            "template_catalog_loaded",
            path=str(path),
            baseline=len(catalog._baseline),
            roles=len(catalog._by_role),
        )
        return catalog


_catalog: TemplateCatalog | None = None


def get_template_catalog() -> TemplateCatalog:
    """Get the configured catalog (YAML override or built-in defaults)."""
    global _catalog
    if _catalog is None:
        path = get_settings().deadlines.catalog_path
        _catalog = TemplateCatalog.from_yaml(path) if path else TemplateCatalog()
    return _catalog


def reset_template_catalog() -> None:
    """Forget the cached catalog (for testing)."""
    global _catalog
    _catalog = None
