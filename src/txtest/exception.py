class TxTestError(Exception):
    ...


class ContextError(TxTestError):
    ...


class AlreadyStartedError(ContextError):
    ...


class NotStartedError(ContextError):
    ...


class HandleError(TxTestError):
    ...


class HandleNotConnectedError(HandleError):
    ...


class HandleReleasedError(HandleError):
    ...


class TransactionAlreadyStartedError(HandleError):
    ...


class TransactionNotStartedError(HandleError):
    ...


class RecordNotFound(TxTestError):
    ...
