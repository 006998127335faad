"""
Department routing configuration.

Holds the fixed pre-college level table and the legacy program-name to
department-name table. Both are frozen once loaded; the routing resolver
receives a ``RoutingConfig`` instance instead of reading module globals.
"""

import json
from dataclasses import dataclass, field
from functools import lru_cache
from pathlib import Path
from types import MappingProxyType
from typing import Mapping, Optional

from registrar.core.config import settings
from registrar.core.logging import logger

ARTS_AND_SCIENCES = "College of Arts and Sciences"
BUSINESS_MANAGEMENT = "College of Business Management"
EDUCATION = "College of Education"
GRADUATE_SCHOOL = "Graduate School"
COMPUTER_STUDIES = "College of Computer Studies"
RADIOLOGIC_TECHNOLOGY = "College of Radiologic Technology"

DEFAULT_LEVEL_DEPARTMENTS = {
    "basic education": "Basic Education Department",
    "elementary": "Grade School Department",
    "high school": "Junior High School Department",
}

DEFAULT_PROGRAM_DEPARTMENTS = {
    # Arts and Sciences
    "BA Comm": ARTS_AND_SCIENCES,
    "ABEL": ARTS_AND_SCIENCES,
    "AB PolSci": ARTS_AND_SCIENCES,
    "BS Mathematics": ARTS_AND_SCIENCES,
    "BS Psych": ARTS_AND_SCIENCES,
    # Business Management
    "BSBA": BUSINESS_MANAGEMENT,
    "BS Entrep": BUSINESS_MANAGEMENT,
    "BS PubAd": BUSINESS_MANAGEMENT,
    "BSREM": BUSINESS_MANAGEMENT,
    "BSHM": BUSINESS_MANAGEMENT,
    # Education
    "BEED": EDUCATION,
    "BSED": EDUCATION,
    "BTLEd": EDUCATION,
    "BPED": EDUCATION,
    "BSNEd": EDUCATION,
    "CTP": EDUCATION,
    "BECEd": EDUCATION,
    # Graduate programs
    "M.A. Engl.": GRADUATE_SCHOOL,
    "M.A. Fil.": GRADUATE_SCHOOL,
    "M.A.C": GRADUATE_SCHOOL,
    "MBA": GRADUATE_SCHOOL,
    "DBA": GRADUATE_SCHOOL,
    "MAEM": GRADUATE_SCHOOL,
    "Ed.D": GRADUATE_SCHOOL,
    "Ph.D": GRADUATE_SCHOOL,
    "M.Ed": GRADUATE_SCHOOL,
    "M.S.": GRADUATE_SCHOOL,
    "M.S.Ed": GRADUATE_SCHOOL,
    "MAN": GRADUATE_SCHOOL,
    # Single-program colleges
    "BSN": "College of Nursing",
    "BSCS": COMPUTER_STUDIES,
    "BSIT": COMPUTER_STUDIES,
    "ACT": COMPUTER_STUDIES,
    "BSPT": "College of Physical Therapy",
    "BSRT": RADIOLOGIC_TECHNOLOGY,
    "AradTech": RADIOLOGIC_TECHNOLOGY,
    "BSA": "College of Accountancy",
    "J.D.": "College of Law",
    # Senior high strands have no owning college
    "Academic Track": None,
    "GAS": None,
    "ABM": None,
    "STEM": None,
    "HUMSS": None,
}


def _level_key(level: Optional[str]) -> str:
    return (level or "").strip().lower()


def _program_key(program: Optional[str]) -> str:
    return (program or "").strip().lower()


@dataclass(frozen=True)
class RoutingConfig:
    """
    Immutable routing tables.

    ``level_departments`` maps a lower-cased educational level to a department
    name. ``program_departments`` maps a program name to a department name or
    to None for programs that belong to no college. Program lookups are
    case-insensitive.
    """

    level_departments: Mapping[str, str] = field(default_factory=dict)
    program_departments: Mapping[str, Optional[str]] = field(default_factory=dict)

    def __post_init__(self):
        levels = {_level_key(level): name for level, name in self.level_departments.items()}
        programs = {_program_key(program): name for program, name in self.program_departments.items()}
        object.__setattr__(self, "level_departments", MappingProxyType(levels))
        object.__setattr__(self, "program_departments", MappingProxyType(programs))

    def department_for_level(self, level: Optional[str]) -> Optional[str]:
        return self.level_departments.get(_level_key(level))

    def is_pre_college(self, level: Optional[str]) -> bool:
        return _level_key(level) in self.level_departments

    def department_for_program(self, program: Optional[str]) -> Optional[str]:
        return self.program_departments.get(_program_key(program))

    @classmethod
    def default(cls) -> "RoutingConfig":
        return cls(DEFAULT_LEVEL_DEPARTMENTS, DEFAULT_PROGRAM_DEPARTMENTS)

    @classmethod
    def from_file(cls, path: str) -> "RoutingConfig":
        """
        Load tables from a JSON file with optional ``levels`` and ``programs``
        objects. Missing sections fall back to the built-in tables.
        """
        data = json.loads(Path(path).read_text(encoding="utf-8"))
        return cls(
            data.get("levels", DEFAULT_LEVEL_DEPARTMENTS),
            data.get("programs", DEFAULT_PROGRAM_DEPARTMENTS),
        )


@lru_cache(maxsize=1)
def get_routing_config() -> RoutingConfig:
    """Load the routing configuration once per process."""
    path = settings.requests.program_map_path
    if path:
        config = RoutingConfig.from_file(path)
        logger.info(f"Loaded routing configuration from {path}")
    else:
        config = RoutingConfig.default()
    logger.info(
        f"Routing configuration ready: {len(config.level_departments)} levels, "
        f"{len(config.program_departments)} programs"
    )
    return config
