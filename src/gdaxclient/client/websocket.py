"""WebSocket feed client with reconnection and heartbeat monitoring."""

import asyncio
import inspect
import json
from collections.abc import Callable, Mapping
from typing import Any

import aiohttp

from ..utils.config import Config
from ..utils.logger import logger
from .auth import create_websocket_auth_fields

EVENTS = ("message", "error", "open", "close")
DEFAULT_CHANNELS = ["full"]
AUTH_FIELDS = ("key", "secret", "passphrase")


def _channel_name(channel: str | Mapping[str, Any]) -> str:
    return channel["name"] if isinstance(channel, Mapping) else channel


class WebsocketClient:
    """Async client for the exchange's streaming feed.

    Listeners are registered per event with `on`:
        - "message": every feed message except errors (dict)
        - "error": error messages from the feed (dict) or connection errors
        - "open": the socket connected
        - "close": the socket closed
    """

    def __init__(
        self,
        product_ids: str | list[str],
        websocket_uri: str | None = None,
        auth: Mapping[str, str] | None = None,
        channels: list[str | dict[str, Any]] | None = None,
    ):
        if isinstance(product_ids, str):
            product_ids = [product_ids]
        self.product_ids = list(product_ids)
        self.url = websocket_uri or Config.get_ws_url()

        if auth is not None:
            missing = [name for name in AUTH_FIELDS if not auth.get(name)]
            if missing:
                raise ValueError(
                    f"auth requires key, secret and passphrase (missing: {', '.join(missing)})"
                )
            auth = dict(auth)
        self.auth = auth

        channels = list(channels) if channels else list(DEFAULT_CHANNELS)
        # Heartbeats drive the connection watchdog
        if not any(_channel_name(c) == "heartbeat" for c in channels):
            channels.append("heartbeat")
        self.channels = channels

        self.ws: aiohttp.ClientWebSocketResponse | None = None
        self.session: aiohttp.ClientSession | None = None
        self._running = False
        self._reconnect_attempts = 0
        self._max_reconnect_attempts = Config.WS_MAX_RECONNECT_ATTEMPTS

        # Channel name -> product IDs, replayed on every (re)connect
        self._subscriptions: dict[str, set[str]] = {}
        self._record_subscription(self.product_ids, self.channels, add=True)

        self._event_handlers: dict[str, list[Callable]] = {e: [] for e in EVENTS}
        # Message type or "type.product_id" -> handlers
        self._message_handlers: dict[str, list[Callable]] = {}
        self._handler_tasks: set[asyncio.Task] = set()

        # Heartbeat tracking
        self._last_heartbeat = 0.0
        self._ping_task: asyncio.Task | None = None
        self._watchdog_task: asyncio.Task | None = None

        # Main tasks
        self._receive_task: asyncio.Task | None = None
        self._connect_event = asyncio.Event()

    # Listeners

    def on(self, event: str, handler: Callable) -> None:
        """
        Register a listener for "message", "error", "open" or "close".

        Args:
            event: Event name
            handler: Callable or coroutine function
        """
        if event not in EVENTS:
            raise ValueError(f"event must be one of {EVENTS}, got {event!r}")
        self._event_handlers[event].append(handler)

    def off(self, event: str, handler: Callable) -> None:
        """Remove a listener registered with `on`."""
        if event in self._event_handlers and handler in self._event_handlers[event]:
            self._event_handlers[event].remove(handler)

    def add_handler(self, type_or_channel: str, handler: Callable) -> None:
        """
        Add a handler for one message type.

        Args:
            type_or_channel: Message type (e.g., "match") or type and product
                (e.g., "match.BTC-USD")
            handler: Callable or coroutine function receiving the message
        """
        self._message_handlers.setdefault(type_or_channel, []).append(handler)

    def remove_handler(self, type_or_channel: str, handler: Callable) -> None:
        """Remove a handler added with `add_handler`."""
        handlers = self._message_handlers.get(type_or_channel)
        if handlers and handler in handlers:
            handlers.remove(handler)

    def _emit(self, event: str, *args: Any) -> None:
        for handler in list(self._event_handlers.get(event, [])):
            self._call_handler(handler, *args)

    def _call_handler(self, handler: Callable, *args: Any) -> None:
        try:
            result = handler(*args)
        except Exception as e:
            logger.error(f"Error in handler {handler!r}: {e}", exc_info=True)
            return
        if inspect.isawaitable(result):
            task = asyncio.ensure_future(result)
            self._handler_tasks.add(task)
            task.add_done_callback(self._handler_done)

    def _handler_done(self, task: asyncio.Task) -> None:
        self._handler_tasks.discard(task)
        if task.cancelled():
            return
        error = task.exception()
        if error is not None:
            logger.error(f"Error in async handler: {error}", exc_info=error)

    # Connection lifecycle

    async def connect(self) -> None:
        """Connect, subscribe and start the background loops."""
        if self._running:
            logger.warning("WebSocket already connected")
            return

        self._running = True
        self._reconnect_attempts = 0
        await self._open()

        if not self._running:
            raise aiohttp.ClientConnectionError(
                f"Could not connect to {self.url} after {self._reconnect_attempts} retries"
            )

    async def _open(self) -> None:
        try:
            if self.session is None or self.session.closed:
                self.session = aiohttp.ClientSession()

            logger.info(f"Connecting to WebSocket: {self.url}")
            self.ws = await self.session.ws_connect(self.url)
        except (aiohttp.ClientError, OSError, asyncio.TimeoutError) as e:
            logger.error(f"WebSocket connection failed: {e}")
            self._emit("error", e)
            await self._schedule_reconnect()
            return

        self._reconnect_attempts = 0
        self._last_heartbeat = 0.0
        self._connect_event.set()
        logger.info("WebSocket connected")
        self._emit("open")

        await self._resubscribe_all()

        self._cancel_background_tasks()
        self._receive_task = asyncio.create_task(self._receive_loop())
        self._ping_task = asyncio.create_task(self._ping_loop())
        self._watchdog_task = asyncio.create_task(self._watchdog_loop())

    async def disconnect(self) -> None:
        """Disconnect from the feed."""
        logger.info("Disconnecting WebSocket")
        self._running = False
        self._connect_event.clear()

        for task in (self._ping_task, self._watchdog_task, self._receive_task):
            if task and task is not asyncio.current_task():
                task.cancel()
                try:
                    await task
                except asyncio.CancelledError:
                    pass

        if self.ws and not self.ws.closed:
            await self.ws.close()
            self._emit("close")

        if self.session and not self.session.closed:
            await self.session.close()

        logger.info("WebSocket disconnected")

    def _cancel_background_tasks(self) -> None:
        current = asyncio.current_task()
        for task in (self._ping_task, self._watchdog_task, self._receive_task):
            if task and task is not current and not task.done():
                task.cancel()

    async def _send_message(self, message: dict[str, Any]) -> None:
        """Send a message to the feed."""
        if self.ws and not self.ws.closed:
            await self.ws.send_json(message)
        else:
            logger.warning("Cannot send message: WebSocket not connected")

    async def _receive_loop(self) -> None:
        """Main receive loop for feed messages."""
        ws = self.ws
        try:
            if ws is None:
                raise RuntimeError("WebSocket not connected")
            async for msg in ws:
                if msg.type == aiohttp.WSMsgType.TEXT:
                    try:
                        data = json.loads(msg.data)
                    except json.JSONDecodeError as e:
                        logger.error(f"Failed to decode message: {e}")
                        continue
                    try:
                        self._handle_message(data)
                    except Exception as e:
                        logger.error(f"Error handling message: {e}", exc_info=True)

                elif msg.type == aiohttp.WSMsgType.ERROR:
                    logger.error(f"WebSocket error: {ws.exception()}")
                    self._emit("error", ws.exception())
                    break

                elif msg.type in (aiohttp.WSMsgType.CLOSE, aiohttp.WSMsgType.CLOSED):
                    logger.warning("WebSocket closed by server")
                    break

        except asyncio.CancelledError:
            logger.debug("Receive loop cancelled")
            return
        except Exception as e:
            logger.error(f"Receive loop error: {e}", exc_info=True)
            self._emit("error", e)

        if self._running:
            # Reconnect only replaces a closed socket
            if ws is not None and not ws.closed:
                await ws.close()
            self._connect_event.clear()
            self._emit("close")
            await self._schedule_reconnect()

    def _handle_message(self, data: dict[str, Any]) -> None:
        """Route one feed message to listeners and type handlers."""
        msg_type = data.get("type")

        if msg_type == "error":
            logger.error(f"Feed error: {data.get('message')} - {data.get('reason')}")
            self._emit("error", data)
            return

        if msg_type == "heartbeat":
            self._last_heartbeat = asyncio.get_running_loop().time()
        elif msg_type == "subscriptions":
            logger.debug(f"Subscriptions confirmed: {data.get('channels', [])}")

        self._emit("message", data)

        keys = [msg_type]
        product_id = data.get("product_id")
        if product_id:
            keys.append(f"{msg_type}.{product_id}")
        for key in keys:
            for handler in list(self._message_handlers.get(key, [])):
                self._call_handler(handler, data)

    # Subscriptions

    def _record_subscription(
        self,
        product_ids: list[str],
        channels: list[str | dict[str, Any]],
        add: bool,
    ) -> None:
        for channel in channels:
            name = _channel_name(channel)
            ids = product_ids
            if isinstance(channel, Mapping):
                ids = channel.get("product_ids", product_ids)

            if add:
                self._subscriptions.setdefault(name, set()).update(ids)
            elif name in self._subscriptions:
                current = self._subscriptions[name]
                current.difference_update(ids)
                if not ids or not current:
                    del self._subscriptions[name]

    def _build_message(
        self,
        msg_type: str,
        product_ids: list[str] | None,
        channels: list[str | dict[str, Any]],
    ) -> dict[str, Any]:
        message: dict[str, Any] = {"type": msg_type}
        if product_ids:
            message["product_ids"] = product_ids
        message["channels"] = channels

        if self.auth and msg_type == "subscribe":
            message.update(
                create_websocket_auth_fields(
                    self.auth["key"], self.auth["secret"], self.auth["passphrase"]
                )
            )
        return message

    async def subscribe(
        self,
        product_ids: str | list[str] | None = None,
        channels: list[str | dict[str, Any]] | None = None,
    ) -> None:
        """
        Subscribe to channels.

        Args:
            product_ids: Products to subscribe (default: the client's products)
            channels: Channel names or {"name", "product_ids"} dicts
                (default: the client's channels)
        """
        if isinstance(product_ids, str):
            product_ids = [product_ids]
        product_ids = list(product_ids) if product_ids is not None else self.product_ids
        channels = list(channels) if channels is not None else self.channels

        self._record_subscription(product_ids, channels, add=True)

        if not self.is_connected:
            logger.warning(
                "WebSocket not connected, channels will be subscribed on connect"
            )
            return

        await self._send_message(self._build_message("subscribe", product_ids, channels))
        logger.info(f"Subscribed to {[_channel_name(c) for c in channels]} for {product_ids}")

    async def unsubscribe(
        self,
        product_ids: str | list[str] | None = None,
        channels: list[str | dict[str, Any]] | None = None,
    ) -> None:
        """
        Unsubscribe from channels.

        Args:
            product_ids: Products to unsubscribe; omit to drop whole channels
            channels: Channel names or dicts (default: the client's channels)
        """
        if isinstance(product_ids, str):
            product_ids = [product_ids]
        product_ids = list(product_ids) if product_ids else []
        channels = list(channels) if channels is not None else self.channels

        self._record_subscription(product_ids, channels, add=False)

        if self.is_connected:
            await self._send_message(
                self._build_message("unsubscribe", product_ids, channels)
            )
            logger.info(f"Unsubscribed from {[_channel_name(c) for c in channels]}")

    def _subscription_channels(self) -> list[str | dict[str, Any]]:
        """Current subscriptions in the feed's channel format."""
        channels: list[str | dict[str, Any]] = []
        for name, ids in self._subscriptions.items():
            if ids:
                channels.append({"name": name, "product_ids": sorted(ids)})
            else:
                channels.append(name)
        return channels

    async def _resubscribe_all(self) -> None:
        """Send every recorded subscription on a fresh connection."""
        if self._subscriptions:
            channels = self._subscription_channels()
            logger.info(f"Subscribing to {len(channels)} channels")
            await self._send_message(self._build_message("subscribe", None, channels))

    # Health

    async def _ping_loop(self) -> None:
        """Send periodic pings to keep the connection alive."""
        try:
            while self._running:
                await asyncio.sleep(Config.WS_PING_INTERVAL)
                if self.ws and not self.ws.closed:
                    await self.ws.ping()
        except asyncio.CancelledError:
            logger.debug("Ping loop cancelled")
        except (aiohttp.ClientError, ConnectionError) as e:
            logger.warning(f"Ping failed: {e}")

    async def _watchdog_loop(self) -> None:
        """Close a silent connection so the receive loop reconnects."""
        interval = max(1, Config.WS_HEARTBEAT_TIMEOUT // 2)
        try:
            while self._running:
                await asyncio.sleep(interval)

                if self._last_heartbeat > 0:
                    silence = asyncio.get_running_loop().time() - self._last_heartbeat
                    if silence > Config.WS_HEARTBEAT_TIMEOUT:
                        logger.warning(
                            f"No heartbeat received for {silence:.0f}s, reconnecting"
                        )
                        if self.ws and not self.ws.closed:
                            await self.ws.close()
                        break
        except asyncio.CancelledError:
            logger.debug("Watchdog loop cancelled")

    async def _schedule_reconnect(self) -> None:
        """Schedule a reconnection attempt with linear back-off."""
        if not self._running:
            return

        if self._reconnect_attempts >= self._max_reconnect_attempts:
            message = f"Max reconnection attempts ({self._max_reconnect_attempts}) reached"
            logger.error(message)
            self._running = False
            self._emit("error", aiohttp.ClientConnectionError(message))
            return

        self._reconnect_attempts += 1
        delay = Config.WS_RECONNECT_DELAY * self._reconnect_attempts

        logger.info(
            f"Reconnecting in {delay}s (attempt {self._reconnect_attempts}/{self._max_reconnect_attempts})"
        )

        await asyncio.sleep(delay)

        if self._running and (not self.ws or self.ws.closed):
            await self._open()

    async def wait_connected(self, timeout: float = 10.0) -> bool:
        """
        Wait for the feed to be connected.

        Args:
            timeout: Maximum time to wait in seconds

        Returns:
            True if connected, False if timeout
        """
        try:
            await asyncio.wait_for(self._connect_event.wait(), timeout=timeout)
            return True
        except asyncio.TimeoutError:
            return False

    @property
    def is_connected(self) -> bool:
        """Check if the socket is open."""
        return self._running and self.ws is not None and not self.ws.closed

    @property
    def last_heartbeat(self) -> float:
        """Event loop time of the last heartbeat message, 0 if none yet."""
        return self._last_heartbeat
