"""Unit tests for DocumentReconcilerWorker

Tests cover:
- Worker initialization with configuration
- run_once execution with reconciliation
- Reconciliation disabled scenario
- Error handling scenarios
- Shutdown and cleanup
"""

import pytest
from decimal import Decimal
from unittest.mock import AsyncMock, MagicMock, patch
from datetime import datetime

from src.worker.document_reconciler import DocumentReconcilerWorker, format_discrepancy
from src.app.use_cases.lifecycle.dtos import ReconciliationResultDTO, DocumentDiscrepancyDTO


def _mock_session_factory(mock_sessionmaker):
    mock_session = MagicMock()
    mock_session.__aenter__ = AsyncMock(return_value=mock_session)
    mock_session.__aexit__ = AsyncMock()
    mock_sessionmaker.return_value = MagicMock(return_value=mock_session)
    return mock_session


@pytest.fixture
def sample_reconciliation_result():
    return ReconciliationResultDTO(
        total_documents_checked=10,
        discrepancies_found=0,
        discrepancies=[],
        reconciliation_time=datetime.utcnow(),
        execution_time_ms=150,
    )


@pytest.fixture
def sample_discrepancy_result():
    return ReconciliationResultDTO(
        total_documents_checked=3,
        discrepancies_found=1,
        discrepancies=[
            DocumentDiscrepancyDTO(
                document_id=1,
                document_number="INV-10001",
                document_type="invoice",
                status="open",
                cached={"total": Decimal("1000"), "paid": Decimal("0"), "due": Decimal("1000")},
                replayed={"total": Decimal("1000"), "paid": Decimal("600"), "due": Decimal("400")},
                expected_status="partially_paid",
            )
        ],
        reconciliation_time=datetime.utcnow(),
        execution_time_ms=20,
    )


class TestDocumentReconcilerWorkerInit:
    """Test worker initialization"""

    @patch("src.worker.document_reconciler.ApplicationConfig")
    @patch("src.worker.document_reconciler.create_async_engine")
    def test_initializes_with_default_config(self, mock_create_engine, mock_app_config):
        mock_app_config.DB_URI = "sqlite+aiosqlite:///./default.db"
        mock_create_engine.return_value = MagicMock()

        worker = DocumentReconcilerWorker()

        assert worker.db_uri == "sqlite+aiosqlite:///./default.db"
        mock_create_engine.assert_called_once()

    @patch("src.worker.document_reconciler.create_async_engine")
    def test_initializes_with_custom_db_uri(self, mock_create_engine):
        mock_create_engine.return_value = MagicMock()

        worker = DocumentReconcilerWorker(db_uri="sqlite+aiosqlite:///./custom.db")

        assert worker.db_uri == "sqlite+aiosqlite:///./custom.db"


@pytest.mark.asyncio
class TestDocumentReconcilerWorkerRunOnce:
    """Test run_once execution"""

    @patch("src.worker.document_reconciler.ApplicationConfig")
    @patch("src.worker.document_reconciler.ReconcileDocuments")
    @patch("src.worker.document_reconciler.create_async_engine")
    @patch("src.worker.document_reconciler.sessionmaker")
    async def test_run_once_executes_reconciliation(
        self,
        mock_sessionmaker,
        mock_create_engine,
        mock_use_case_class,
        mock_app_config,
        sample_reconciliation_result,
    ):
        """
        Given: Reconciliation is enabled
        When: run_once is called
        Then: Executes reconciliation use case and returns result
        """
        mock_app_config.RECONCILIATION_ENABLED = True
        _mock_session_factory(mock_sessionmaker)

        mock_result = MagicMock()
        mock_result.is_err.return_value = False
        mock_result.value = sample_reconciliation_result
        mock_use_case = MagicMock()
        mock_use_case.execute = AsyncMock(return_value=mock_result)
        mock_use_case_class.return_value = mock_use_case

        worker = DocumentReconcilerWorker(db_uri="sqlite+aiosqlite://")
        result = await worker.run_once()

        assert result.total_documents_checked == 10
        assert result.discrepancies_found == 0
        mock_use_case.execute.assert_called_once()

    @patch("src.worker.document_reconciler.ApplicationConfig")
    @patch("src.worker.document_reconciler.ReconcileDocuments")
    @patch("src.worker.document_reconciler.create_async_engine")
    @patch("src.worker.document_reconciler.sessionmaker")
    async def test_run_once_returns_discrepancies(
        self,
        mock_sessionmaker,
        mock_create_engine,
        mock_use_case_class,
        mock_app_config,
        sample_discrepancy_result,
    ):
        mock_app_config.RECONCILIATION_ENABLED = True
        _mock_session_factory(mock_sessionmaker)

        mock_result = MagicMock()
        mock_result.is_err.return_value = False
        mock_result.value = sample_discrepancy_result
        mock_use_case_class.return_value.execute = AsyncMock(return_value=mock_result)

        worker = DocumentReconcilerWorker(db_uri="sqlite+aiosqlite://")
        result = await worker.run_once()

        assert result.discrepancies_found == 1
        assert result.discrepancies[0].expected_status == "partially_paid"

    @patch("src.worker.document_reconciler.ApplicationConfig")
    @patch("src.worker.document_reconciler.ReconcileDocuments")
    @patch("src.worker.document_reconciler.create_async_engine")
    async def test_run_once_skips_when_disabled(
        self, mock_create_engine, mock_use_case_class, mock_app_config
    ):
        """
        Given: Reconciliation is disabled
        When: run_once is called
        Then: Returns empty result without running the use case
        """
        mock_app_config.RECONCILIATION_ENABLED = False

        worker = DocumentReconcilerWorker(db_uri="sqlite+aiosqlite://")
        result = await worker.run_once()

        assert result.total_documents_checked == 0
        assert result.discrepancies_found == 0
        mock_use_case_class.assert_not_called()

    @patch("src.worker.document_reconciler.ApplicationConfig")
    @patch("src.worker.document_reconciler.ReconcileDocuments")
    @patch("src.worker.document_reconciler.create_async_engine")
    @patch("src.worker.document_reconciler.sessionmaker")
    async def test_run_once_raises_on_use_case_error(
        self, mock_sessionmaker, mock_create_engine, mock_use_case_class, mock_app_config
    ):
        mock_app_config.RECONCILIATION_ENABLED = True
        _mock_session_factory(mock_sessionmaker)

        mock_result = MagicMock()
        mock_result.is_err.return_value = True
        mock_result.error.message = "Failed to reconcile document ledgers"
        mock_use_case_class.return_value.execute = AsyncMock(return_value=mock_result)

        worker = DocumentReconcilerWorker(db_uri="sqlite+aiosqlite://")

        with pytest.raises(RuntimeError) as exc_info:
            await worker.run_once()

        assert "Failed to reconcile document ledgers" in str(exc_info.value)

    @patch("src.worker.document_reconciler.create_async_engine")
    async def test_shutdown_disposes_engine(self, mock_create_engine):
        mock_engine = MagicMock()
        mock_engine.dispose = AsyncMock()
        mock_create_engine.return_value = mock_engine

        worker = DocumentReconcilerWorker(db_uri="sqlite+aiosqlite://")
        await worker.shutdown()

        mock_engine.dispose.assert_called_once()


class TestFormatDiscrepancy:
    def test_includes_expected_status(self, sample_discrepancy_result):
        line = format_discrepancy(sample_discrepancy_result.discrepancies[0])

        assert line.startswith("INV-10001 [open]")
        assert "expected_status=partially_paid" in line

    def test_omits_expected_status_when_status_matches(self, sample_discrepancy_result):
        discrepancy = sample_discrepancy_result.discrepancies[0].model_copy(update={"expected_status": None})

        assert "expected_status" not in format_discrepancy(discrepancy)
