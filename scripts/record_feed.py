import asyncio

from gdaxclient.client.websocket import WebsocketClient
from gdaxclient.recorder import FeedRecorder
from gdaxclient.utils.logger import logger


async def main():
    """Main entry point for the feed recorder."""
    products_to_record: list[str] = ["BTC-USD", "ETH-USD"]

    ws_client = WebsocketClient(products_to_record, channels=["matches", "ticker"])
    recorder = FeedRecorder(ws_client, data_dir="market_data")

    try:
        await ws_client.connect()

        logger.info(f"Recording feed for {products_to_record}")
        logger.info("Data will be saved to Parquet files every minute or when buffer is full")
        logger.info("Press Ctrl+C to stop...")

        while True:
            await asyncio.sleep(10)
            await recorder.tick()

    except (KeyboardInterrupt, asyncio.CancelledError):
        logger.info("Interrupted. Shutting down...")
    finally:
        await ws_client.disconnect()
        await recorder.flush()
        logger.info("Feed recorder stopped.")


if __name__ == "__main__":
    asyncio.run(main())
