from anemic.ioc import Container, service
from sqlalchemy import Engine, create_engine
from sqlalchemy.orm import Session

from deposit_bridge.config import Config
from deposit_bridge.models import Base


@service(scope="global", interface_override=Engine)
def engine_factory(container: Container):
    config: Config = container.get(interface=Config)
    engine = create_engine(config.db_url)
    Base.metadata.create_all(engine)
    return engine


@service(scope="transaction", interface_override=Session)
def session_factory(container: Container):
    engine: Engine = container.get(interface=Engine)
    return Session(bind=engine, autobegin=False)
