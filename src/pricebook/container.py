from dependency_injector import containers, providers

from pricebook.config import Settings
from pricebook.db.session import build_engine, build_session_factory


class Container(containers.DeclarativeContainer):
    wiring_config = containers.WiringConfiguration(modules=["pricebook.api.deps"])

    settings = providers.Singleton(Settings)

    # One engine per process; every request opens its own session on it
    engine = providers.Singleton(
        build_engine,
        database_url=settings.provided.database_url,
        echo=settings.provided.debug,
        pool_size=settings.provided.db_pool_size,
    )

    session_factory = providers.Singleton(
        build_session_factory,
        engine=engine,
    )
