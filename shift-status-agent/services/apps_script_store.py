import asyncio
import json
import logging
from datetime import date
from typing import Iterator, Optional, Union

import requests

from services.errors import InvalidSegments, StoreError
from services.shift_models import Shift, ShiftUpdate
from services.store_interface import DateRange, ShiftStore
from services.time_compare import parse_shift_date
from services.wire_format import shift_from_record, update_to_sheet_fields

logger = logging.getLogger(__name__)


class AppsScriptShiftStore(ShiftStore):
    """Google Apps ScriptのWebアプリ経由でシフトシートを読み書きする

    リクエストは text/plain のJSONボディをPOSTし、
    ``{"success": bool, "data": ..., "message": str}`` を受け取る。
    """

    def __init__(
        self,
        url: str,
        client_timezone: str = "Europe/London",
        request_timeout: float = 10.0,
        session: requests.Session = None,
    ):
        self._url = url
        self._client_timezone = client_timezone
        self._request_timeout = request_timeout
        self._session = session or requests.Session()

    def _call(self, action: str, **params) -> dict:
        """1回分のAPI呼び出し（同期）。失敗は全てStoreErrorに変換する"""
        payload = {"action": action, "clientTimezone": self._client_timezone, **params}
        try:
            resp = self._session.post(
                self._url,
                data=json.dumps(payload, ensure_ascii=False).encode("utf-8"),
                headers={"Content-Type": "text/plain"},
                timeout=self._request_timeout,
            )
        except requests.RequestException as e:
            raise StoreError(f"{action}の呼び出しに失敗しました: {e}") from e

        if resp.status_code >= 400:
            raise StoreError(f"{action}がHTTP {resp.status_code}を返しました: {resp.text[:120]}")

        try:
            body = resp.json()
        except ValueError as e:
            raise StoreError(f"{action}の応答がJSONではありません") from e

        if not isinstance(body, dict) or not body.get("success"):
            message = body.get("message") if isinstance(body, dict) else body
            raise StoreError(f"{action}が失敗しました: {message}")
        return body

    async def get_shift(
        self, employee_id: str, shift_date: Union[date, str]
    ) -> Optional[Shift]:
        target = parse_shift_date(shift_date)
        body = await asyncio.to_thread(
            self._call, "getCurrentShift", employeeId=employee_id, date=target.isoformat()
        )
        data = body.get("data")
        if not data:
            return None
        try:
            return shift_from_record(data)
        except InvalidSegments as e:
            raise StoreError(f"シフト記録を読み込めません: {e}") from e

    async def list_shifts(
        self,
        employee_id: Optional[str] = None,
        date_range: Optional[DateRange] = None,
    ) -> Iterator[Shift]:
        params = {}
        if employee_id is not None:
            params["employeeId"] = employee_id
        if date_range is not None:
            params["startDate"] = date_range[0].isoformat()
            params["endDate"] = date_range[1].isoformat()

        body = await asyncio.to_thread(self._call, "getShifts", **params)
        return self._iter_records(body.get("data") or [])

    @staticmethod
    def _iter_records(records: list) -> Iterator[Shift]:
        for record in records:
            try:
                yield shift_from_record(record)
            except InvalidSegments as e:
                logger.warning("読み込めないシフト記録をスキップします: %s", e)

    async def write_shift_update(self, shift_id: str, update: ShiftUpdate) -> None:
        await asyncio.to_thread(
            self._call,
            "updateShiftAsAdmin",
            shiftId=shift_id,
            updates=update_to_sheet_fields(update),
        )

    async def close(self) -> None:
        self._session.close()
