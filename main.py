# main.py
"""Main entry point for the autopilot desk."""
import asyncio
import logging
import os
import sys
from pathlib import Path

from dotenv import load_dotenv

from autopilot_desk.agents import ClaudeInsightService
from autopilot_desk.config.settings import Settings
from autopilot_desk.execution import AlpacaBrokerBridge, AlpacaClient
from autopilot_desk.journal import AutopilotCoach, AutopilotHistoryStore, AutopilotJournal
from autopilot_desk.models.trading import Environment
from autopilot_desk.orchestrator import AutopilotTickLoop, TickLogEntry, TickLogType
from autopilot_desk.session import ModeTransitionError, TradingSessionState


# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='[%(asctime)s] %(levelname)s: %(message)s',
    datefmt='%Y-%m-%d %H:%M:%S'
)
logger = logging.getLogger(__name__)

CONFIG_PATH = Path("config/settings.yaml")


def validate_env_vars() -> None:
    """Validate required environment variables are set.

    Raises:
        SystemExit: If any required env var is missing.
    """
    required_vars = [
        "ALPACA_API_KEY",
        "ALPACA_SECRET_KEY",
        "ANTHROPIC_API_KEY",
    ]

    missing = [var for var in required_vars if not os.getenv(var)]

    if missing:
        logger.error(f"Missing required environment variables: {', '.join(missing)}")
        logger.error("Please check your .env file")
        sys.exit(1)


def create_data_dirs(settings: Settings) -> None:
    """Create the history directory if it doesn't exist."""
    Path(settings.journal.history_file).parent.mkdir(parents=True, exist_ok=True)
    logger.info("Data directories verified")


def print_startup_banner(settings: Settings) -> None:
    """Print system startup banner."""
    logger.info("=" * 60)
    logger.info(f"Starting {settings.system.name}")
    logger.info(f"Environment: {settings.session.environment.value}")
    logger.info(f"Autopilot mode: {settings.session.autopilot_mode.value}")
    logger.info(f"Version: {settings.system.version}")
    logger.info("=" * 60)


def load_and_validate_config(config_path: Path = CONFIG_PATH) -> Settings:
    """Load and validate configuration.

    Returns:
        Settings object loaded from YAML.

    Raises:
        SystemExit: If config file missing, env vars invalid, or YAML parsing fails.
    """
    load_dotenv()
    logger.info("✓ Loaded environment variables")

    validate_env_vars()
    logger.info("✓ Environment variables validated")

    if not config_path.exists():
        logger.error(f"{config_path} not found")
        sys.exit(1)

    try:
        settings = Settings.from_yaml(config_path)
        logger.info(f"✓ Settings loaded from {config_path}")
    except Exception as e:
        logger.error(f"Failed to parse {config_path}: {e}")
        sys.exit(1)

    create_data_dirs(settings)

    return settings


def build_session(settings: Settings) -> TradingSessionState:
    """Create the startup trading session.

    Raises:
        SystemExit: If the configured autopilot mode is not permitted.
    """
    try:
        session = settings.session.build_session(settings.risk.to_risk_config())
    except ModeTransitionError as e:
        logger.error(f"Invalid autopilot mode in settings: {e}")
        sys.exit(1)

    if session.environment == Environment.LIVE and settings.alpaca.paper:
        logger.warning("Session is LIVE but the Alpaca client is in paper mode")

    logger.info(f"✓ Session ready: {session.instrument.label} ({session.autopilot_mode.value})")
    return session


def build_components(settings: Settings, session: TradingSessionState) -> dict:
    """Wire the autopilot components.

    Args:
        settings: Loaded settings object.
        session: Session read by the loop on every tick.

    Returns:
        Dict with: alpaca, insights, journal, coach, broker, loop. coach is
        None when history is disabled.
    """
    alpaca_client = AlpacaClient(
        api_key=settings.alpaca.api_key,
        secret_key=settings.alpaca.secret_key,
        paper=settings.alpaca.paper and settings.execution.paper_mode,
    )

    insight_service = ClaudeInsightService(
        api_key=settings.anthropic.api_key or os.getenv("ANTHROPIC_API_KEY", ""),
        model=settings.agents.model,
        max_tokens=settings.agents.max_tokens,
        rate_limit_per_minute=settings.agents.rate_limit_per_minute,
    )
    logger.info("✓ Agent insight service initialized")

    history_store = AutopilotHistoryStore(settings.journal) if settings.journal.enabled else None
    journal = AutopilotJournal(history_store=history_store)
    logger.info("✓ Autopilot journal initialized")

    coach = None
    if history_store is not None:
        coach = AutopilotCoach(history_store, insight_service, settings.journal)

    broker = AlpacaBrokerBridge(alpaca_client=alpaca_client, settings=settings.execution)

    tick_loop = AutopilotTickLoop(
        insight_service=insight_service,
        journal=journal,
        broker=broker,
        session_provider=lambda: session,
        settings=settings.autopilot,
        warning_ratio=settings.risk.warning_ratio,
    )
    tick_loop.log.add_listener(log_tick_entry)
    logger.info("✓ Autopilot tick loop initialized")

    return {
        "alpaca": alpaca_client,
        "insights": insight_service,
        "journal": journal,
        "coach": coach,
        "broker": broker,
        "loop": tick_loop,
    }


def log_tick_entry(entry: TickLogEntry) -> None:
    """Mirror tick log lines to the console."""
    level = logging.ERROR if entry.type == TickLogType.ERROR else logging.INFO
    logger.log(level, f"[{entry.agent_id}] {entry.message}")


async def run_history_coach(coach: AutopilotCoach, session: TradingSessionState) -> None:
    """Log what the history says about this context before arming."""
    report = await coach.review(session)
    logger.info(
        f"History: {report.stats.total} entries, {report.stats.closed} closed, "
        f"win rate {report.stats.win_rate:.1f}%, losing streak {report.stats.losing_streak}"
    )
    if report.error:
        logger.warning(f"History coach unavailable: {report.error}")
    elif report.notes:
        logger.info(f"Coach notes:\n{report.notes}")


async def run(settings: Settings) -> None:
    """Arm the autopilot and run until interrupted or the loop stops itself."""
    session = build_session(settings)
    components = build_components(settings, session)
    alpaca_client: AlpacaClient = components["alpaca"]
    journal: AutopilotJournal = components["journal"]
    coach: AutopilotCoach | None = components.get("coach")
    tick_loop: AutopilotTickLoop = components["loop"]

    try:
        await alpaca_client.connect()
        account = await alpaca_client.get_account()
        logger.info(f"✓ Alpaca connected (Paper mode: {alpaca_client.paper}, Cash: ${account['cash']:,.2f})")
    except Exception as e:
        logger.error(f"Failed to connect to Alpaca: {e}")
        logger.error("Check ALPACA_API_KEY and ALPACA_SECRET_KEY in .env")
        sys.exit(1)

    if coach is not None and settings.journal.coach_on_startup:
        await run_history_coach(coach, session)

    try:
        await tick_loop.arm()
        await tick_loop.wait_idle()
    finally:
        await tick_loop.stop()
        await journal.drain()
        await alpaca_client.disconnect()
        logger.info(f"Autopilot stopped after {tick_loop.tick_count} ticks, {len(journal.entries)} journal entries")


def main() -> None:
    settings = load_and_validate_config()
    print_startup_banner(settings)
    try:
        asyncio.run(run(settings))
    except KeyboardInterrupt:
        logger.info("Interrupted by operator")


if __name__ == "__main__":
    main()
