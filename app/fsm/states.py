from enum import Enum


class Mode(str, Enum):
    normal = "normal"    # menu labels and commands
    search = "search"    # next text is a search query
    compare = "compare"  # next text is "model1, model2"
