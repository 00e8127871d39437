from __future__ import annotations
from typing import Dict, List, Optional
import yaml
from quotedesk.classes.option import Option

OPTION_FIELDS = ("projectType", "budget", "timeline", "status")
INITIAL_STATUS = "new"


class Catalog:
    """Canonical option tables and business profile, loaded from the site YAML file.

    Validation, sorting, notification text and the /options endpoint all read
    values and labels from here; nothing else declares them.
    """

    def __init__(self, settings_path: str):
        self.settings_path = settings_path
        with open(settings_path, "r", encoding="utf-8") as f:
            self.cfg = yaml.safe_load(f) or {}

        business = self.cfg.get("business", {}) or {}
        self.business_name: str = business.get("name", "QuoteDesk")
        self.notify_email: Optional[str] = business.get("notify_email")

        tables = self.cfg.get("options", {}) or {}
        self.options: Dict[str, List[Option]] = {}
        for fname in OPTION_FIELDS:
            rows = tables.get(fname)
            if not rows:
                raise ValueError(f"Site config {settings_path} has no '{fname}' options")
            self.options[fname] = [Option(str(r["value"]), str(r.get("label", r["value"]))) for r in rows]

        if INITIAL_STATUS not in self.values("status"):
            raise ValueError(f"Status table must contain '{INITIAL_STATUS}'")

        self._rank: Dict[str, Dict[str, int]] = {
            fname: {o.value: i for i, o in enumerate(opts)} for fname, opts in self.options.items()
        }

    def values(self, fname: str) -> List[str]:
        return [o.value for o in self.options[fname]]

    def contains(self, fname: str, value: object) -> bool:
        return isinstance(value, str) and value in self._rank[fname]

    def rank(self, fname: str, value: str) -> int:
        """Position of value in its table; unknown values sort last."""
        return self._rank[fname].get(value, len(self._rank[fname]))

    def label(self, fname: str, value: Optional[str]) -> str:
        for o in self.options[fname]:
            if o.value == value:
                return o.label
        return value or "Not specified"

    @property
    def statuses(self) -> List[str]:
        return self.values("status")

    def to_dict(self) -> Dict[str, List[dict]]:
        return {fname: [o.to_dict() for o in opts] for fname, opts in self.options.items()}
