import asyncio
from pydantic import ValidationError
from app.loader import load_bot
from loguru import logger


async def main():
    """
    Main entry point - load bot and start polling.
    """
    try:
        bot, dp = load_bot()
        logger.info("🚗 Starting Car Explorer bot...")
        await dp.start_polling(bot)
    except ValidationError as e:
        logger.error(f"❌ Invalid settings, check BOT_TOKEN in .env: {e}")
    except KeyboardInterrupt:
        logger.info("Bot stopped by user")
    except Exception as e:
        logger.exception(f"Bot error: {e}")
    finally:
        if 'bot' in locals():
            await bot.session.close()


def run():
    asyncio.run(main())


if __name__ == "__main__":
    run()
