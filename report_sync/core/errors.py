"""Exceptions raised by the synchronization engine."""


class TransitionError(RuntimeError):
    """Raised when an operation is invoked in a phase that forbids it.

    This error is raised when:
    1. A state transition is requested before initialization completed
    2. ``initialize()`` is called a second time on the same view
    3. A closed filter editor is edited, applied or reset
    4. The filter editor is opened while a fetch is outstanding
    """

    pass


class MalformedResponseError(ValueError):
    """Raised when a data provider response does not have the expected shape.

    The synchronizer catches this error, clears the display and surfaces a
    warning notice instead of failing the view.
    """

    pass
