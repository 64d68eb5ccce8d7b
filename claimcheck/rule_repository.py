import json
import logging
import os
from typing import Dict, Iterable, List, Optional, Tuple

from pydantic import ValidationError

from claimcheck.models import Rule

logger = logging.getLogger(__name__)


class RuleRepositoryError(Exception):
    """Rule data could not be loaded or failed validation."""


class RuleRepository:
    """Ordered, read-only collection of restricted-claim rules.

    Loaded once and shared across calls; nothing mutates it after
    construction, so it needs no locking.
    """

    def __init__(self, rules: Iterable[Rule], version: str = "unversioned", source: str = "<memory>"):
        self._rules: Tuple[Rule, ...] = tuple(rules)
        self._by_id: Dict[str, Rule] = {}
        for rule in self._rules:
            if rule.id in self._by_id:
                raise RuleRepositoryError(f"Duplicate rule id '{rule.id}' in {source}")
            self._by_id[rule.id] = rule
        self.version = version
        self.source = source

    @classmethod
    def from_records(cls, records: List[dict], version: str = "unversioned", source: str = "<memory>") -> "RuleRepository":
        rules = []
        for index, item in enumerate(records):
            try:
                rules.append(Rule(**item))
            except ValidationError as e:
                rule_id = item.get("id", f"#{index}") if isinstance(item, dict) else f"#{index}"
                raise RuleRepositoryError(f"Invalid rule {rule_id} in {source}: {e}") from e
        return cls(rules, version=version, source=source)

    @classmethod
    def from_file(cls, path: str) -> "RuleRepository":
        if not path or not os.path.exists(path):
            raise RuleRepositoryError(f"Rule file not found: {path}")
        try:
            with open(path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            raise RuleRepositoryError(f"Failed to read rule file {path}: {e}") from e
        if isinstance(data, list):
            records, version = data, "unversioned"
        elif isinstance(data, dict) and isinstance(data.get("rules"), list):
            records, version = data["rules"], str(data.get("version", "unversioned"))
        else:
            raise RuleRepositoryError(f"Rule file {path} must hold a list of rules or an object with a 'rules' list")
        repository = cls.from_records(records, version=version, source=path)
        logger.info("Loaded %s rules (version=%s) from %s", len(repository), version, path)
        return repository

    @property
    def rules(self) -> Tuple[Rule, ...]:
        return self._rules

    def get(self, rule_id: str) -> Optional[Rule]:
        return self._by_id.get(rule_id)

    def list_ids(self, page: int = 1, page_size: int = 20) -> Tuple[List[str], int]:
        ids = [rule.id for rule in self._rules]
        start = (page - 1) * page_size
        return ids[start:start + page_size], len(ids)

    def by_category(self, category: str) -> List[Rule]:
        return [rule for rule in self._rules if rule.category == category]

    def __len__(self) -> int:
        return len(self._rules)

    def __iter__(self):
        return iter(self._rules)
