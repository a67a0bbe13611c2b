"""Tests for TransferVariableList."""

from __future__ import annotations

import pytest

from release_task_runner.transfer import TransferVariable, TransferVariableList


class TestTransferVariableList:
    def test_last_write_wins_and_history_kept(self) -> None:
        transfer = TransferVariableList()
        transfer.append("A", 1)
        transfer.append("A", 2)
        assert transfer.lookup("A") == 2
        assert list(transfer) == [TransferVariable("A", 1), TransferVariable("A", 2)]
        assert len(transfer) == 2
        assert transfer.history("A") == [1, 2]

    def test_lookup_missing_raises(self) -> None:
        with pytest.raises(KeyError):
            TransferVariableList().lookup("missing")

    def test_get_default(self) -> None:
        transfer = TransferVariableList()
        assert transfer.get("missing") is None
        assert transfer.get("missing", "fallback") == "fallback"

    def test_iteration_preserves_interleaved_order(self) -> None:
        transfer = TransferVariableList()
        transfer.append("a", 1)
        transfer.append("b", 2)
        transfer.append("a", 3)
        assert [(e.name, e.value) for e in transfer] == [("a", 1), ("b", 2), ("a", 3)]
        assert transfer.names() == ["a", "b"]
        assert transfer.to_dict() == {"a": 3, "b": 2}

    def test_contains(self) -> None:
        transfer = TransferVariableList()
        transfer.append("built", True)
        assert "built" in transfer
        assert "deployed" not in transfer

    def test_none_value_is_a_real_entry(self) -> None:
        transfer = TransferVariableList()
        transfer.append("x", None)
        assert "x" in transfer
        assert transfer.lookup("x") is None
