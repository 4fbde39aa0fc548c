from doppler_sdk.exceptions import DopplerValueError


def compute_optimal_gamma(
    start_tick: int,
    end_tick: int,
    duration: int,
    epoch_length: int,
    tick_spacing: int,
) -> int:
    """
    Compute the per-epoch tick movement (gamma) for a dynamic auction.

    The result is the smallest positive multiple of `tick_spacing` that lets the price traverse
    the full tick range within the number of epochs that fit in `duration` seconds. Both the
    per-epoch movement and the quantization to the tick spacing round up.
    """

    if duration <= 0:
        raise DopplerValueError(message=f"Auction duration must be positive, got {duration}")
    if epoch_length <= 0:
        raise DopplerValueError(message=f"Epoch length must be positive, got {epoch_length}")
    if tick_spacing <= 0:
        raise DopplerValueError(message=f"Tick spacing must be positive, got {tick_spacing}")

    tick_delta = abs(end_tick - start_tick)

    # ceil(tick_delta / (duration / epoch_length)), kept in integer arithmetic
    per_epoch_ticks = -(-tick_delta * epoch_length // duration)
    gamma = max(tick_spacing, -(-per_epoch_ticks // tick_spacing) * tick_spacing)

    if gamma % tick_spacing != 0:
        raise DopplerValueError(message="Computed gamma must be divisible by tick spacing")

    return gamma


def calculate_gamma(
    start_tick: int,
    end_tick: int,
    duration_days: float,
    epoch_length_hours: float,
) -> int:
    """
    Estimate gamma without tick spacing quantization, rounding down.
    """

    total_epochs = (duration_days * 24) / epoch_length_hours
    return int(abs(end_tick - start_tick) // total_epochs)
