"""
https://python-dependency-injector.ets-labs.org/index.html
https://python-dependency-injector.ets-labs.org/examples/fastapi-sqlalchemy.html
"""

from dependency_injector import containers, providers

from src.platform.config.core_setting import Settings
from src.platform.database.orm_db_setting import Database
from src.platform.database.unit_of_work import SqlAlchemyUnitOfWork
from src.service.ticketing.driven_adapter.gateway.stripe_payment_gateway import (
    StripePaymentGateway,
)
from src.service.ticketing.driven_adapter.notifier.console_notifier import ConsoleNotifier
from src.service.ticketing.driven_adapter.notifier.mailgun_notifier import MailgunNotifier
from src.service.ticketing.driven_adapter.repo.event_detail_query_repo_impl import (
    EventDetailQueryRepoImpl,
)
from src.service.ticketing.driven_adapter.repo.payment_log_repo_impl import PaymentLogRepoImpl
from src.service.ticketing.driven_adapter.repo.payment_repo_impl import PaymentRepoImpl
from src.service.ticketing.driven_adapter.repo.refund_query_repo_impl import RefundQueryRepoImpl
from src.service.ticketing.driven_adapter.repo.reservation_repo_impl import ReservationRepoImpl
from src.service.ticketing.driven_adapter.repo.user_query_repo_impl import UserQueryRepoImpl


class Container(containers.DeclarativeContainer):
    # Configuration
    config_service = providers.Singleton(Settings)

    # Database (engine is built lazily on first session)
    database = providers.Singleton(
        Database, db_url=config_service.provided.DATABASE_URL_ASYNC
    )

    # Transaction boundary: a fresh UoW per use case call
    unit_of_work = providers.Factory(
        SqlAlchemyUnitOfWork, session_factory=database.provided.session
    )

    # Repositories (stateless - use session_factory per-request)
    payment_repo = providers.Singleton(PaymentRepoImpl, session_factory=database.provided.session)
    payment_log_repo = providers.Singleton(
        PaymentLogRepoImpl, session_factory=database.provided.session
    )
    reservation_repo = providers.Singleton(
        ReservationRepoImpl, session_factory=database.provided.session
    )
    event_detail_query_repo = providers.Singleton(
        EventDetailQueryRepoImpl, session_factory=database.provided.session
    )
    user_query_repo = providers.Singleton(
        UserQueryRepoImpl, session_factory=database.provided.session
    )
    refund_query_repo = providers.Singleton(
        RefundQueryRepoImpl, session_factory=database.provided.session
    )

    # Payment gateway: one client instance carrying its own credentials
    payment_gateway = providers.Singleton(
        StripePaymentGateway,
        api_key=config_service.provided.STRIPE_SECRET_KEY.get_secret_value.call(),
        webhook_tolerance_seconds=config_service.provided.STRIPE_WEBHOOK_TOLERANCE_SECONDS,
    )

    # Notifier (NOTIFIER_BACKEND: console | mailgun)
    notifier = providers.Selector(
        config_service.provided.NOTIFIER_BACKEND,
        console=providers.Singleton(ConsoleNotifier),
        mailgun=providers.Singleton(
            MailgunNotifier,
            api_base_url=config_service.provided.MAILGUN_API_BASE_URL,
            api_key=config_service.provided.MAILGUN_API_KEY.get_secret_value.call(),
            sending_domain=config_service.provided.MAILGUN_SENDING_DOMAIN,
            timeout_seconds=config_service.provided.EXTERNAL_CALL_TIMEOUT_SECONDS,
        ),
    )


container = Container()


def setup() -> None:
    container.config_service()


async def cleanup() -> None:
    notifier = container.notifier()
    if isinstance(notifier, MailgunNotifier):
        await notifier.aclose()
    await container.database().dispose()
    container.reset_singletons()
