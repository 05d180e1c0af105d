from .mirror import AreaMirror, CommandRejected, NoGameInProgress

__all__ = ['AreaMirror', 'CommandRejected', 'NoGameInProgress']
