"""
Tests for the tenant orchestrator: failure isolation, one-shot retry and
the run summary.
"""

from unittest.mock import MagicMock

from src.core.reconciliation import pipelines
from src.core.reconciliation.comparator import compare_values
from src.core.reconciliation.models import CheckStatus, TenantCheckResult
from src.core.runners.mongo_runner import DataSourceQueryError
from src.orchestrators.workflow import run_apportionment_check


def outcome(tenant_id, status):
    match = status == CheckStatus.MATCH
    return TenantCheckResult(
        tenant_id=tenant_id,
        status=status,
        comparison={'currentTax': compare_values(107.0, 107.0 if match else 100.0)},
    )


class ScriptedCheck:
    """Per-tenant check that replays a script of outcomes (exceptions are raised)."""

    def __init__(self, script):
        self.script = {tenant: list(outcomes) for tenant, outcomes in script.items()}
        self.calls = []

    def __call__(self, data_source, tenant_id, window, fiscal_year=None):
        self.calls.append(tenant_id)
        step = self.script[tenant_id].pop(0)
        if isinstance(step, Exception):
            raise step
        return outcome(tenant_id, step)


class TestRunApportionmentCheck:
    """Tests for run_apportionment_check."""

    def test_all_tenants_processed_in_order(self, window):
        check = ScriptedCheck({
            'acme': [CheckStatus.MATCH],
            'globex': [CheckStatus.MISMATCH],
            'initech': [CheckStatus.MATCH],
        })
        result = run_apportionment_check(MagicMock(), ['acme', 'globex', 'initech'], window, check_fn=check)

        assert check.calls == ['acme', 'globex', 'initech']
        assert [r.tenant_id for r in result.results] == ['acme', 'globex', 'initech']
        summary = result.summary
        assert (summary.total, summary.matched, summary.mismatched, summary.errors) == (3, 2, 1, 0)
        assert summary.date_range['fromDate'] == '03-01-2025'
        assert summary.duration_ms >= 0

    def test_failed_tenant_retried_and_replaced(self, window):
        check = ScriptedCheck({
            'acme': [CheckStatus.MATCH],
            'globex': [RuntimeError("cursor timeout"), CheckStatus.MISMATCH],
            'initech': [CheckStatus.MATCH],
        })
        result = run_apportionment_check(MagicMock(), ['acme', 'globex', 'initech'], window, check_fn=check)

        assert check.calls == ['acme', 'globex', 'initech', 'globex']
        globex = result.results[1]
        assert globex.status == CheckStatus.MISMATCH
        assert globex.error is None
        assert globex.comparison['currentTax'].diff == 7.0
        summary = result.summary
        assert (summary.matched, summary.mismatched, summary.errors) == (2, 1, 0)

    def test_retry_exactly_once(self, window):
        check = ScriptedCheck({
            'acme': [RuntimeError("first"), RuntimeError("second")],
            'globex': [CheckStatus.MATCH],
        })
        result = run_apportionment_check(MagicMock(), ['acme', 'globex'], window, check_fn=check)

        assert check.calls == ['acme', 'globex', 'acme']
        acme = result.results[0]
        assert acme.status == CheckStatus.ERROR
        assert acme.error == "second"
        assert acme.comparison is None
        assert result.summary.errors == 1

    def test_retries_in_original_order(self, window):
        check = ScriptedCheck({
            'a': [ValueError("x"), CheckStatus.MATCH],
            'b': [CheckStatus.MATCH],
            'c': [ValueError("y"), CheckStatus.MATCH],
        })
        run_apportionment_check(MagicMock(), ['a', 'b', 'c'], window, check_fn=check)
        assert check.calls == ['a', 'b', 'c', 'a', 'c']

    def test_duplicate_tenant_ids_retried_by_position(self, window):
        check = ScriptedCheck({'acme': [CheckStatus.MATCH, RuntimeError("boom"), CheckStatus.MISMATCH]})
        result = run_apportionment_check(MagicMock(), ['acme', 'acme'], window, check_fn=check)

        assert [r.status for r in result.results] == [CheckStatus.MATCH, CheckStatus.MISMATCH]

    def test_no_tenants(self, window):
        result = run_apportionment_check(MagicMock(), [], window, check_fn=ScriptedCheck({}))
        assert result.summary.total == 0
        assert result.summary.all_matched

    def test_result_object_contract(self, window):
        check = ScriptedCheck({'acme': [RuntimeError("boom"), RuntimeError("boom again")]})
        payload = run_apportionment_check(MagicMock(), ['acme'], window, check_fn=check).to_dict()

        assert set(payload) == {'summary', 'results'}
        assert set(payload['summary']) == {
            'total', 'matched', 'mismatched', 'errors', 'dateRange', 'timestamp', 'durationMs',
        }
        assert payload['results'][0] == {
            'tenantId': 'acme', 'status': 'ERROR', 'comparison': None,
            'error': 'boom again', 'crossCheck': [],
        }
        assert payload['summary']['timestamp'].endswith('Z')


class TestRunWithTenantDatabases:
    """run_apportionment_check with the real per-tenant check on in-memory databases."""

    @staticmethod
    def matching_db(tenant_db_factory, make_tax_frame):
        return tenant_db_factory(
            tax_payments=make_tax_frame(
                {'taxYear': 2024, 'schoolDistrict': 1, 'taxAmt': 100.0, 'penaltyAmt': 5.0,
                 'totalFees': 2.0, 'total': 107.0},
            ),
            config_doc={'scope': 'paymentConfig', 'config': {'noPriorTax': False}},
        )

    @staticmethod
    def fail_first_tax_query(db):
        """Make the first tax aggregation on db raise, later ones succeed."""
        serve = db.aggregate.side_effect
        failures = [DataSourceQueryError("Aggregation on taxpayments failed: cursor killed",
                                         collection=pipelines.TAX_PAYMENTS)]

        def aggregate(collection, pipeline):
            if collection == pipelines.TAX_PAYMENTS and failures:
                raise failures.pop()
            return serve(collection, pipeline)

        db.aggregate.side_effect = aggregate
        return db

    def test_aggregation_failure_recovered_on_retry(self, tenant_db_factory, make_tax_frame, window):
        dbs = {
            'acme': self.matching_db(tenant_db_factory, make_tax_frame),
            'globex': self.fail_first_tax_query(self.matching_db(tenant_db_factory, make_tax_frame)),
            'initech': self.matching_db(tenant_db_factory, make_tax_frame),
        }
        data_source = MagicMock()
        data_source.tenant.side_effect = dbs.get

        result = run_apportionment_check(data_source, ['acme', 'globex', 'initech'], window, fiscal_year=2025)

        assert [call.args[0] for call in data_source.tenant.call_args_list] == [
            'acme', 'globex', 'initech', 'globex',
        ]
        assert [r.tenant_id for r in result.results] == ['acme', 'globex', 'initech']
        globex = result.results[1]
        assert globex.status == CheckStatus.MATCH
        assert globex.error is None
        assert globex.comparison['currentTax'].to_dict() == {
            'apportionment': 107.0, 'gl': 107.0, 'diff': 0.0, 'match': True,
        }
        summary = result.summary
        assert (summary.total, summary.matched, summary.mismatched, summary.errors) == (3, 3, 0, 0)

    def test_aggregation_failure_twice_is_error(self, tenant_db_factory, make_tax_frame, window):
        db = self.matching_db(tenant_db_factory, make_tax_frame)
        db.aggregate.side_effect = DataSourceQueryError("Aggregation on taxpayments failed: timeout")
        data_source = MagicMock()
        data_source.tenant.return_value = db

        result = run_apportionment_check(data_source, ['acme'], window, fiscal_year=2025)

        acme = result.results[0]
        assert acme.status == CheckStatus.ERROR
        assert "Aggregation on taxpayments failed" in acme.error
        assert data_source.tenant.call_count == 2
