from typing import List

from everstaking.control.settings.base import BaseStakingSettings


class ConsoleSettings(BaseStakingSettings):

    # use node console for ledger access instead of everos
    MAXIMIZE_USAGE = True
    EXEC_PATH = '/opt/ton/tools/console'
    SERVER_ADDRESS = '127.0.0.1:3031'
    SERVER_PUBLIC_KEY = None
    CLIENT_PRIVATE_KEY = None
    TIMEOUT = 60


class TonosCliSettings(BaseStakingSettings):

    EXEC_PATH = '/opt/ton/tools/tonos-cli'
    CONFIG_URL = 'https://mainnet.evercloud.dev'
    TIMEOUT = 60


class EverosSettings(BaseStakingSettings):

    ENDPOINTS: List[str] = [
        'eri01.main.everos.dev',
        'gra01.main.everos.dev',
        'gra02.main.everos.dev',
        'lim01.main.everos.dev',
        'rbx01.main.everos.dev'
    ]
    QUERY_TIMEOUT = 300
