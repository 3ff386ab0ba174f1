from typing import Callable, Dict, List


ChangeHandler = Callable[[str, dict], None]
CHANGE_HANDLERS: Dict[str, List[ChangeHandler]] = {}


def change_handler(event: str):
    def _decorator(fn: ChangeHandler):
        CHANGE_HANDLERS.setdefault(event, []).append(fn)
        return fn

    return _decorator
