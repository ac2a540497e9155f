class Window:
    def __init__(self, start, end=None):
        self.start = start
        self.end = end

    def overlaps(self, start, end):
        return range_overlap((self.start, self.end), (start, end))

    def __repr__(self):
        return f"Window(start={self.start}, end={self.end})"


def range_overlap(a, b):
    # an open window (end of None) runs until the end of the fight
    a_end = a[1] if a[1] is not None else float("inf")
    b_end = b[1] if b[1] is not None else float("inf")
    return a[0] <= b_end and b[0] <= a_end


class BasePreprocessor:
    def preprocess_event(self, event):
        pass


class BaseAnalyzer:
    def add_event(self, event):
        pass

    def score(self):
        return 1

    def report(self):
        return {}
