import random
import string

ID_ALPHABET = string.digits + string.ascii_lowercase
ID_LENGTH = 7


def generate_id():
    """Generate a short random base-36 identifier for a new record"""
    return ''.join(random.choices(ID_ALPHABET, k=ID_LENGTH))
