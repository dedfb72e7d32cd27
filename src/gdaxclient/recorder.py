"""Record ticker and trade (match) messages from the feed to Parquet files."""

import asyncio
import datetime
from pathlib import Path
from typing import Any

import pandas as pd

from .client.websocket import WebsocketClient
from .utils.logger import logger
from .utils.timing import parse_time

RECORDED_TYPES = ("match", "ticker")


def _to_float(value: Any) -> float | None:
    return float(value) if value not in (None, "") else None


def _utc_day(value: datetime.datetime) -> datetime.date:
    return value.astimezone(datetime.timezone.utc).date()


class FeedRecorder:
    """Buffers feed messages per product and appends them to daily Parquet files.

    Blocking pandas I/O runs in worker threads via asyncio.to_thread so the
    receive loop is never stalled by a save.
    """

    def __init__(
        self,
        ws_client: WebsocketClient,
        data_dir: str | Path = "market_data",
        save_interval_seconds: int = 60,
        max_buffer_size: int = 1000,
    ):
        self.ws_client = ws_client
        self.data_dir = Path(data_dir)
        self.data_dir.mkdir(parents=True, exist_ok=True)
        self.save_interval_seconds = save_interval_seconds
        self.max_buffer_size = max_buffer_size

        # (message type, product_id) -> records
        self.buffers: dict[tuple[str, str], list[dict[str, Any]]] = {}
        self.last_save_time = datetime.datetime.now(datetime.timezone.utc)

        for msg_type in RECORDED_TYPES:
            ws_client.add_handler(msg_type, self.on_message)

        logger.info(f"FeedRecorder initialized. Data dir: {self.data_dir}")

    async def on_message(self, data: dict[str, Any]) -> None:
        """Buffer one ticker or match message."""
        msg_type = data.get("type")
        product_id = data.get("product_id")
        if msg_type not in RECORDED_TYPES or not product_id:
            return

        try:
            record = (
                self._match_record(data) if msg_type == "match" else self._ticker_record(data)
            )
        except (KeyError, TypeError, ValueError) as e:
            logger.warning(f"Skipping malformed {msg_type} message: {e}")
            return

        buffer = self.buffers.setdefault((msg_type, product_id), [])
        buffer.append(record)

        if len(buffer) >= self.max_buffer_size:
            await self._save_buffer(msg_type, product_id)

    @staticmethod
    def _match_record(data: dict[str, Any]) -> dict[str, Any]:
        return {
            "time": parse_time(data["time"]),
            "product_id": data["product_id"],
            "trade_id": int(data["trade_id"]),
            "sequence": int(data.get("sequence", 0)),
            "price": float(data["price"]),
            "size": float(data["size"]),
            "maker_side": data["side"],
        }

    @staticmethod
    def _ticker_record(data: dict[str, Any]) -> dict[str, Any]:
        return {
            "time": parse_time(data.get("time"))
            or datetime.datetime.now(datetime.timezone.utc),
            "product_id": data["product_id"],
            "sequence": int(data.get("sequence", 0)),
            "price": float(data["price"]),
            "best_bid": _to_float(data.get("best_bid")),
            "best_ask": _to_float(data.get("best_ask")),
            "volume_24h": _to_float(data.get("volume_24h")),
        }

    async def tick(self) -> None:
        """Save all buffers once the save interval has elapsed."""
        now = datetime.datetime.now(datetime.timezone.utc)
        if (now - self.last_save_time).total_seconds() >= self.save_interval_seconds:
            logger.info("Saving data (trigger: time interval)...")
            await self.flush()
            self.last_save_time = now

    async def flush(self) -> None:
        """Save every non-empty buffer concurrently."""
        await asyncio.gather(
            *(
                self._save_buffer(msg_type, product_id)
                for (msg_type, product_id), buffer in list(self.buffers.items())
                if buffer
            )
        )

    async def _save_buffer(self, msg_type: str, product_id: str) -> None:
        key = (msg_type, product_id)
        buffer = self.buffers.get(key)
        if not buffer:
            return

        # Swap the buffer out before the save so new messages keep arriving
        self.buffers[key] = []
        saved_days: set[datetime.date] = set()
        try:
            await asyncio.to_thread(
                self._sync_save, msg_type, product_id, buffer, saved_days
            )
        except Exception as e:
            # Records of days already written are dropped
            unsaved = [r for r in buffer if _utc_day(r["time"]) not in saved_days]
            self.buffers[key] = unsaved + self.buffers[key]
            logger.error(
                f"Error saving {msg_type} data for {product_id}, "
                f"keeping {len(unsaved)} records for retry: {e}",
                exc_info=True,
            )
            return
        logger.info(f"Saved {len(buffer)} {msg_type} records for {product_id}")

    def _sync_save(
        self,
        msg_type: str,
        product_id: str,
        records: list,
        saved_days: set[datetime.date],
    ) -> None:
        """Append records to one file per UTC day (runs in a worker thread).

        Each day is added to `saved_days` once its file is written.
        """
        df = pd.DataFrame(records)
        df["date"] = pd.to_datetime(df["time"], utc=True).dt.date

        for date, group_df in df.groupby("date"):
            filename = self.file_path(msg_type, product_id, date)
            group_df = group_df.drop("date", axis=1)

            if filename.exists():
                existing_df = pd.read_parquet(filename)
                group_df = pd.concat([existing_df, group_df], ignore_index=True)

            group_df.to_parquet(
                filename,
                engine="pyarrow",
                compression="snappy",
                index=False,
            )
            saved_days.add(date)

    def file_path(self, msg_type: str, product_id: str, date: datetime.date) -> Path:
        """Parquet file holding one day of one message type for a product."""
        return self.data_dir / f"{msg_type}_{product_id}_{date.strftime('%Y%m%d')}.parquet"
