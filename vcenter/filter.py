import fnmatch


class IncludeExcludeFilter:
    """
    Glob based name filter. An empty include list lets every name in.
    """

    def __init__(self, include=None, exclude=None):
        self.include = list(include or [])
        self.exclude = list(exclude or [])

    def match(self, name) -> bool:
        if self.include and not any(fnmatch.fnmatchcase(name, pattern) for pattern in self.include):
            return False
        return not any(fnmatch.fnmatchcase(name, pattern) for pattern in self.exclude)

    def __repr__(self):
        return f'<IncludeExcludeFilter include={self.include} exclude={self.exclude}>'
