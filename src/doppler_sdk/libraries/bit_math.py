def most_significant_bit(number: int) -> int:
    """
    Find the index of the most significant set bit for the given number.
    """

    if number <= 0:
        msg = "Number must be >0"
        raise ValueError(msg)

    return number.bit_length() - 1
