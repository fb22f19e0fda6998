"""Tests for vaultctl package imports and exports."""

from __future__ import annotations


class TestPackageImports:
    """Tests for package imports."""

    def test_import_vaultctl(self):
        import vaultctl

        assert hasattr(vaultctl, "__version__")
        assert vaultctl.Batcher is not None

    def test_import_core_modules(self):
        from vaultctl.core import client, config, exceptions, logging, output, validation

        assert client is not None
        assert config is not None
        assert exceptions is not None
        assert validation is not None
        assert output is not None
        assert logging is not None

    def test_import_models(self):
        from vaultctl.models import base, deposit, progress

        assert base is not None
        assert deposit is not None
        assert progress is not None

    def test_import_services(self):
        from vaultctl.services import base, batcher, deposits

        assert base is not None
        assert batcher is not None
        assert deposits is not None

    def test_import_cli(self):
        from vaultctl.cli import common, deposit, main

        assert main is not None
        assert common is not None
        assert deposit is not None

    def test_deposit_service_satisfies_api(self):
        from vaultctl.services.batcher import DepositAPI
        from vaultctl.services.deposits import DepositService

        for name in ("register_deposit", "resume_deposit", "upload_chunk", "deposit_status"):
            assert hasattr(DepositAPI, name)
            assert callable(getattr(DepositService, name))


class TestExceptionHierarchy:
    """Tests for exception hierarchy."""

    def test_base_error(self):
        from vaultctl.core.exceptions import VaultCtlError

        exc = VaultCtlError("test error", {"deposit_id": 3})
        assert "test error" in str(exc)
        assert "deposit_id" in str(exc)

    def test_deposit_errors_are_operation_errors(self):
        from vaultctl.core.exceptions import (
            BatchOperationError,
            DepositCancelledError,
            DepositRegistrationError,
            DepositUploadError,
            OperationError,
        )

        assert issubclass(DepositRegistrationError, OperationError)
        assert issubclass(DepositCancelledError, OperationError)
        assert issubclass(DepositUploadError, BatchOperationError)

    def test_upload_error_lists_failures(self):
        from vaultctl.core.exceptions import DepositUploadError

        exc = DepositUploadError(5, 3, {"a/b.txt": "chunk 1/2: timeout"}, remote_errored=1)

        text = str(exc)
        assert "a/b.txt: chunk 1/2: timeout" in text
        assert "1 file(s) errored on the server" in text
        assert exc.failed == 2
        assert exc.deposit_id == 5

    def test_cancelled_mentions_deposit(self):
        from vaultctl.core.exceptions import DepositCancelledError

        assert "42" in str(DepositCancelledError(42))
        assert DepositCancelledError().deposit_id is None

    def test_finalization_error_carries_deposit(self):
        from vaultctl.core.exceptions import DepositFinalizationError, OperationError

        exc = DepositFinalizationError(8, "timed out", summary="s")

        assert isinstance(exc, OperationError)
        assert exc.deposit_id == 8
        assert exc.summary == "s"
        assert "deposit 8" in str(exc)
