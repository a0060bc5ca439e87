import numpy as np

def soft_clip(x: np.ndarray, drive: float = 1.5) -> np.ndarray:
    # Smooth limiter. drive ~ 1.2–2.0
    return np.tanh(drive * x) / np.tanh(drive)

def match_channels(data: np.ndarray, channels: int) -> np.ndarray:
    """
    (frames, n) -> (frames, channels). Mono is duplicated, anything wider
    than a mono target is averaged down.
    """
    n = data.shape[1]
    if n == channels:
        return data
    if n == 1:
        return np.repeat(data, channels, axis=1)
    if channels == 1:
        return data.mean(axis=1, keepdims=True)
    if n > channels:
        return data[:, :channels]
    # pad by repeating the last channel
    extra = np.repeat(data[:, -1:], channels - n, axis=1)
    return np.concatenate([data, extra], axis=1)

def resample_linear(data: np.ndarray, from_rate: int, to_rate: int) -> np.ndarray:
    """Linear-interpolation resampling of a (frames, channels) block."""
    if from_rate == to_rate:
        return data

    original_length = data.shape[0]
    new_length = int(round(original_length * to_rate / from_rate))
    if original_length == 0 or new_length <= 0:
        return np.zeros((0, data.shape[1]), dtype=np.float32)

    indices = np.linspace(0, original_length - 1, new_length)
    base = np.arange(original_length)
    out = np.empty((new_length, data.shape[1]), dtype=np.float32)
    for ch in range(data.shape[1]):
        out[:, ch] = np.interp(indices, base, data[:, ch])
    return out
