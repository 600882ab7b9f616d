"""Rule source backed by the Prometheus rules API."""

from __future__ import annotations

from promrules_linter.exceptions import BackendError
from promrules_linter.logging_utils import create_service_logger
from promrules_linter.models import RuleKind, RuleQuery
from promrules_linter.protocols import PrometheusApiProtocol

logger = create_service_logger("promrules.rule_source")

_VALIDATED_KINDS = {kind.value: kind for kind in RuleKind}


class PrometheusRuleSource:
    """Flattens backend rule groups into rule queries."""

    def __init__(self, api: PrometheusApiProtocol) -> None:
        self._api = api

    def list_rule_queries(self) -> list[RuleQuery]:
        """List recording and alerting rule queries.

        Groups and the rules within them keep the backend's order. Rules of
        any other kind are skipped.

        Raises:
            BackendError: If the rules cannot be listed
        """
        try:
            groups = self._api.list_rule_groups()
        except BackendError as exc:
            raise BackendError(f"failed to get rules: {exc}") from exc

        queries: list[RuleQuery] = []
        skipped = 0
        for group in groups:
            for rule in group.rules:
                kind = _VALIDATED_KINDS.get(rule.type)
                if kind is None:
                    skipped += 1
                    continue
                queries.append(
                    RuleQuery(
                        query=rule.query,
                        kind=kind,
                        group_name=group.name,
                        rule_name=rule.name,
                    )
                )

        logger.info(
            "Listed rule queries",
            group_count=len(groups),
            rule_count=len(queries),
            skipped_rules=skipped,
        )
        return queries
