class InvalidArgument(ValueError):
    """Raised when a feature construction call receives an empty or absent argument."""

    def __init__(self, param, message=None):
        self.param = param
        self.message = message or f"{param} must be a non-empty string"
        super().__init__(self.message)

    def __repr__(self):
        return f"InvalidArgument({self.param!r}, {self.message!r})"
