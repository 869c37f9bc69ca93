# src/nicpk/models/linear_absorption.py
import numpy as np


def absorbed_amount(dose_mg, elapsed_s, full_release_s, fraction):
    """
    Linear absorption ramp, capped at the absorption fraction.

      absorbed(t) = D * min(A * t / T, A)

    Parameters:
      dose_mg        : nicotine content of the pouch (mg)
      elapsed_s      : time in the mouth (s); negatives count as 0
      full_release_s : ramp length T (s), floored to 1 s
      fraction       : absorption fraction A (0.30)

    Example: 6 mg, 15 min into a 30 min ramp -> 6 * 0.30 * 0.5 = 0.9 mg

    Works elementwise on numpy arrays as well as on plain floats.
    """
    release = np.maximum(full_release_s, 1.0)
    fractional = np.maximum(elapsed_s, 0.0) / release
    return dose_mg * np.minimum(fraction * fractional, fraction)


def decayed_amount(initial_mg, since_removal_s, half_life_s):
    """
    Exponential elimination after removal, in half-life form:

      N(t) = N0 * 0.5 ** (t / T_half)

    Same curve as N0 * exp(-ln2 * t / T_half); the power form keeps the
    published half-life visible.
    """
    half_life = np.maximum(half_life_s, 1.0)
    return initial_mg * np.power(0.5, np.maximum(since_removal_s, 0.0) / half_life)
