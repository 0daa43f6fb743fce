import random
import string

_ID_ALPHABET = string.ascii_uppercase + string.digits


def generate_id(length: int = 8) -> str:
    """
    Generate a short random identifier of uppercase letters and digits.

    :param length: Number of characters in the identifier
    :return: The identifier
    """
    return "".join(random.choices(_ID_ALPHABET, k=length))
