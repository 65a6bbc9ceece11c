class PyramidError(Exception):
    """ピラミッドチャートの前提条件違反（呼び出し側のバグ）"""


class BucketMismatchError(PyramidError, ValueError):
    """系列間でバケットラベルの並びが一致しない"""


class UnassignedCategoryError(PyramidError, KeyError):
    """符号が割り当てられていないカテゴリ"""

    def __init__(self, category):
        super().__init__(category)
        self.category = category

    def __str__(self):
        return f"No sign assigned for category '{self.category}'"


class DuplicateCategoryError(PyramidError, ValueError):
    """同じカテゴリの系列が複数ある"""
