# warehouse_server/app/errors.py


class InputFormatError(Exception):
    """Uploaded file could not be turned into rows or blocks."""


class UnsupportedFormatError(InputFormatError):
    pass


class EmptyInputError(InputFormatError):
    pass


class NoValidRowsError(Exception):
    def __init__(self, errors):
        self.errors = list(errors)
        super().__init__(f"No valid items found ({len(self.errors)} rejected)")


class PersistenceError(Exception):
    """Whole-batch store failure; nothing was committed."""


class ItemNotFoundError(Exception):
    def __init__(self, item_id):
        self.item_id = item_id
        super().__init__(f"item {item_id} not found")
