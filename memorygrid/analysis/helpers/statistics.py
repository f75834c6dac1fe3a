"""
Descriptive statistics and Student's t-tests for the click-time analysis.

Pure functions over sequences of numbers. Empty or too-short input raises
``InsufficientDataError``; paired samples of different length raise
``DimensionMismatchError``. Both are ``ValueError`` subclasses.
"""
import math
import statistics
from dataclasses import dataclass

from scipy.special import betainc

SIGNIFICANCE_LEVEL = 0.05

# Above this many degrees of freedom the t distribution is replaced by the
# standard normal.
NORMAL_APPROXIMATION_DF = 100


class InsufficientDataError(ValueError):
    """Raised when a statistic is requested for too few observations."""


class DimensionMismatchError(ValueError):
    """Raised when paired samples differ in length."""


def mean(xs) -> float:
    xs = list(xs)
    if not xs:
        raise InsufficientDataError("Cannot compute the mean of an empty sample.")
    return statistics.mean(xs)


def standard_deviation(xs) -> float:
    """Sample standard deviation (n - 1 denominator); 0.0 for a single value."""
    xs = list(xs)
    if not xs:
        raise InsufficientDataError("Cannot compute the standard deviation of an empty sample.")
    if len(xs) == 1:
        return 0.0
    return statistics.stdev(xs)


def describe(xs) -> dict:
    xs = list(xs)
    return {"mean": mean(xs), "sd": standard_deviation(xs), "n": len(xs)}


def t_distribution_cdf(t: float, df: float) -> float:
    """
    P(T <= t) for Student's t with *df* degrees of freedom.

    For ``df <= 100`` the tail comes from the regularized incomplete beta
    function, ``P(T > |t|) = 0.5 * I_x(df/2, 1/2)`` with ``x = df / (df + t^2)``,
    which is exact to floating-point precision. For ``df > 100`` the standard
    normal CDF is used instead; its absolute error against the true t CDF stays
    below about 0.003 there.
    """
    if df <= 0:
        raise InsufficientDataError(f"Degrees of freedom must be positive, got {df}.")
    if df > NORMAL_APPROXIMATION_DF:
        return 0.5 * (1 + math.erf(t / math.sqrt(2)))
    x = df / (df + t * t)
    upper_tail = 0.5 * float(betainc(df / 2, 0.5, x))
    return 1 - upper_tail if t >= 0 else upper_tail


def two_tailed_p_value(t: float, df: float) -> float:
    p = 2 * (1 - t_distribution_cdf(abs(t), df))
    return min(1.0, max(0.0, p))


def _t_statistic(difference: float, se: float) -> float:
    if se == 0:
        if difference == 0:
            return 0.0
        return math.copysign(math.inf, difference)
    return difference / se


@dataclass(frozen=True)
class PairedTTestResult:
    mean_diff: float
    sd_diff: float
    n: int
    se: float
    t_stat: float
    df: int
    p_value: float
    significant: bool


@dataclass(frozen=True)
class IndependentTTestResult:
    mean1: float
    mean2: float
    var1: float
    var2: float
    n1: int
    n2: int
    se: float
    t_stat: float
    df: int
    p_value: float
    significant: bool
    difference: float


def paired_t_test(a, b) -> PairedTTestResult:
    """
    Paired-samples t-test of ``a - b``.

    A zero standard error gives ``t = 0`` (p = 1) when the mean difference is
    0 and an infinite ``t`` (p = 0) otherwise.
    """
    a, b = list(a), list(b)
    if len(a) != len(b):
        raise DimensionMismatchError(f"Paired samples differ in length: {len(a)} != {len(b)}.")
    if len(a) < 2:
        raise InsufficientDataError("A paired t-test needs at least 2 pairs.")

    diffs = [x - y for x, y in zip(a, b)]
    n = len(diffs)
    mean_diff = mean(diffs)
    sd_diff = standard_deviation(diffs)
    se = sd_diff / math.sqrt(n)
    t_stat = _t_statistic(mean_diff, se)
    df = n - 1
    p_value = two_tailed_p_value(t_stat, df)
    return PairedTTestResult(
        mean_diff=mean_diff,
        sd_diff=sd_diff,
        n=n,
        se=se,
        t_stat=t_stat,
        df=df,
        p_value=p_value,
        significant=p_value < SIGNIFICANCE_LEVEL,
    )


def independent_t_test(a, b) -> IndependentTTestResult:
    """Two-sample t-test assuming equal variances (pooled variance)."""
    a, b = list(a), list(b)
    n1, n2 = len(a), len(b)
    if n1 == 0 or n2 == 0:
        raise InsufficientDataError("An independent t-test needs two non-empty samples.")
    df = n1 + n2 - 2
    if df < 1:
        raise InsufficientDataError("An independent t-test needs at least 3 observations in total.")

    mean1, mean2 = mean(a), mean(b)
    var1 = statistics.variance(a) if n1 > 1 else 0.0
    var2 = statistics.variance(b) if n2 > 1 else 0.0
    pooled = ((n1 - 1) * var1 + (n2 - 1) * var2) / df
    se = math.sqrt(pooled * (1 / n1 + 1 / n2))
    difference = mean1 - mean2
    t_stat = _t_statistic(difference, se)
    p_value = two_tailed_p_value(t_stat, df)
    return IndependentTTestResult(
        mean1=mean1,
        mean2=mean2,
        var1=var1,
        var2=var2,
        n1=n1,
        n2=n2,
        se=se,
        t_stat=t_stat,
        df=df,
        p_value=p_value,
        significant=p_value < SIGNIFICANCE_LEVEL,
        difference=difference,
    )
