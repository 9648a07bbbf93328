"""Process-wide service objects, built once at startup and handed to request handlers."""
import logging
from dataclasses import dataclass
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncEngine

from club_events.config import Settings
from club_events.database import build_engine, build_sessionmaker, init_models
from club_events.services.background import BackgroundNotifier
from club_events.services.calendar_service import CalendarService
from club_events.services.email_service import EmailService, EmailSettings, MailTransport, SmtpTransport
from club_events.services.invite_service import InviteService
from club_events.storage import StorageGateway

logger = logging.getLogger(__name__)


@dataclass
class Services:
    engine: AsyncEngine
    storage: StorageGateway
    notifier: BackgroundNotifier
    email: EmailService
    calendar: CalendarService
    invites: InviteService

    async def close(self) -> None:
        """Let in-flight notifications finish, then release database connections."""
        await self.notifier.drain()
        await self.engine.dispose()


async def build_services(
    settings: Settings,
    transport: Optional[MailTransport] = None,
    create_tables: Optional[bool] = None,
) -> Services:
    """Wire storage, email and the two services together.

    ``transport`` defaults to SMTP when email is enabled. Tables are created
    automatically for SQLite databases unless ``create_tables`` says otherwise.
    """
    engine = build_engine(settings.DATABASE_URL)
    if create_tables is None:
        create_tables = settings.DATABASE_URL.startswith("sqlite")
    if create_tables:
        await init_models(engine)

    if transport is None and settings.ENABLE_EMAIL:
        transport = SmtpTransport.from_settings(settings)

    storage = StorageGateway(engine, build_sessionmaker(engine))
    notifier = BackgroundNotifier()
    email = EmailService(storage, transport, EmailSettings.from_settings(settings))
    calendar = CalendarService(storage, email, notifier, display_timezone=settings.DISPLAY_TIMEZONE)
    invites = InviteService(storage, email, notifier, calendar)

    logger.info("Services ready (email %s)", "enabled" if email.available else "disabled")
    return Services(
        engine=engine,
        storage=storage,
        notifier=notifier,
        email=email,
        calendar=calendar,
        invites=invites,
    )
