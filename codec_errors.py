class HuffmanError(Exception): # base for every error the codec raises
    pass


class EmptyInputError(HuffmanError, ValueError): # frequency table has no entries
    pass


class MissingCodeError(HuffmanError, LookupError): # symbol has no code in the codebook
    def __init__(self, symbol):
        super().__init__(f"no code for symbol {symbol!r}")
        self.symbol = symbol


class InvariantViolation(HuffmanError, RuntimeError): # heap or tree broke an internal contract (a bug, not user error)
    pass


class DecodeError(HuffmanError, ValueError): # payload or serialized codebook cannot be decoded
    pass
