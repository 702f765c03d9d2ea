"""Example module for the quilldoc walkthrough.

Two functions document the same kind of operation, one in each supported
docstring dialect.
"""


def function_with_google_docstring(param1: int, param2: str, param3: float, param4: bool) -> bool:
    """Example function with types documented in the Google style.

    Args:
        param1 (int): The first parameter.
        param2 (str): The second parameter.
        param3 (float): The third parameter.
        param4 (bool): The fourth parameter.

    Returns:
        bool: True if every parameter is truthy, False otherwise.
    """
    return bool(param1 and param2 and param3 and param4)


def function_with_numpy_docstring(param1: int, param2: str, param3: float, param4: bool) -> bool:
    """Example function with types documented in the numpydoc style.

    Parameters
    ----------
    param1 : int
        The first parameter.
    param2 : str
        The second parameter.
    param3 : float
        The third parameter.
    param4 : bool
        The fourth parameter.

    Returns
    -------
    bool
        True if every parameter is truthy, False otherwise.
    """
    return bool(param1 and param2 and param3 and param4)
