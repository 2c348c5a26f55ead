"""
Data sync test fixtures.
"""

from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional


BASE_TIME = datetime(2024, 1, 1, tzinfo=timezone.utc)


def _stamp(offset_seconds: int) -> str:
    return (BASE_TIME + timedelta(seconds=offset_seconds)).strftime("%Y-%m-%dT%H:%M:%SZ")


class SyncFixtures:
    """Fixtures for data sync testing."""

    @staticmethod
    def mempool_records(count: int, start: int = 0) -> List[Dict[str, Any]]:
        """Mempool snapshots one minute apart."""
        return [
            {
                "time": _stamp(60 * i),
                "first_seen_time": _stamp(60 * i - 30),
                "number_of_transactions": 10 + i % 7,
                "voters": 5,
                "tickets": i % 3,
                "revocations": 0,
                "size": 2048 + i,
                "total_fee": 0.01 * (i % 10),
                "total": 100.5 + i,
            }
            for i in range(start, start + count)
        ]

    @staticmethod
    def vsp_tick_records(count: int, start: int = 1, vsp: str = "vsp.example") -> List[Dict[str, Any]]:
        return [
            {
                "id": i,
                "vsp": vsp,
                "immature": 3,
                "live": 120 + i,
                "voted": 900 + i,
                "missed": 2,
                "pool_fees": 2.0,
                "proportion_live": 0.01,
                "proportion_missed": 0.002,
                "user_count": 50,
                "users_active": 40,
                "time": _stamp(300 * i),
            }
            for i in range(start, start + count)
        ]

    @staticmethod
    def block_records(count: int, start_height: int = 1) -> List[Dict[str, Any]]:
        return [
            {
                "block_receive_time": _stamp(300 * height + 1),
                "block_internal_time": _stamp(300 * height),
                "block_height": height,
                "block_hash": f"{height:064x}",
            }
            for height in range(start_height, start_height + count)
        ]

    @staticmethod
    def vote_records(count: int, start: int = 0) -> List[Dict[str, Any]]:
        return [
            {
                "hash": f"vote{i:060d}",
                "receive_time": _stamp(10 * i),
                "targeted_block_time": _stamp(10 * i - 5),
                "block_receive_time": _stamp(10 * i - 4),
                "voting_on": 1000 + i // 5,
                "block_hash": f"{1000 + i // 5:064x}",
                "validator_id": i % 5,
                "validity": "Valid",
            }
            for i in range(start, start + count)
        ]

    @staticmethod
    def page(
        records: Optional[List[Dict[str, Any]]] = None,
        total_count: Optional[int] = None,
        success: bool = True,
        message: Optional[str] = None,
    ) -> Dict[str, Any]:
        """Wire body of one sync page."""
        body: Dict[str, Any] = {"success": success, "records": records}
        if total_count is not None:
            body["total_count"] = total_count
        if message is not None:
            body["message"] = message
        return body

    @staticmethod
    def failure(message: str) -> Dict[str, Any]:
        return {"success": False, "message": message, "records": None}
