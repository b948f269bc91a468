class TonCoin(object):

    ONE_COIN = 10 ** 9

    @staticmethod
    def convert_to_nano_tokens(tokens) -> int:
        return int(tokens * TonCoin.ONE_COIN)

    @staticmethod
    def convert_to_tokens_ceil(nano_tokens: int) -> int:
        return -(-int(nano_tokens) // TonCoin.ONE_COIN)
