from pico_ioc import factory, provides
from .config import ABConfig

@factory
class ABInfrastructureFactory:
    @provides(ABConfig, scope="singleton")
    def provide_ab_config(self) -> ABConfig:
        return ABConfig.from_env()
