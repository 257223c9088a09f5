#-----------------------------------------------------------------------
# Name:        goodness_of_fit (tripmodels package)
# Purpose:     Functions for goodness-of-fit statistics and draw plots
# Author:      Thomas Wieland
#              ORCID: 0000-0001-5168-9846
#              mail: geowieland@googlemail.com
# Version:     1.0.0
# Last update: 2026-10-18 16:20
# Copyright (c) 2024-2026 Thomas Wieland
#-----------------------------------------------------------------------


import numpy as np
import pandas as pd
import matplotlib.pyplot as plt
from pandas.api.types import is_numeric_dtype
from math import sqrt
import tripmodels.config as config


def modelfit(
    observed,
    expected,
    remove_nan: bool = True,
    perc_factor: int = 100,
    verbose: bool = False
    ):

    """
    Compute goodness-of-fit metrics for observed and expected values
    (e.g. observed leaving shares vs. predicted leaving probabilities).

    Parameters
    ----------
    observed : array-like
        One-dimensional numeric vector containing observed values.
        Supported types include NumPy arrays and pandas Series.
    expected : array-like
        One-dimensional numeric vector containing expected (predicted) values.
        Must have the same length as `observed`.
    remove_nan : bool, optional
        If True (default), rows containing NaN values in either `observed`
        or `expected` are removed prior to computation. If False, the
        presence of NaNs raises a ValueError.
    perc_factor : int, optional
        Scaling factor for the symmetric percentage error (default is 100).
    verbose : bool, optional
        If True, print informational messages during processing.

    Returns
    -------
    data_residuals : pandas.DataFrame
        DataFrame containing observed values, expected values, residuals,
        squared residuals, absolute residuals and symmetric absolute
        percentage error (sAPE) for each observation.
    data_lossfunctions : dict
        Dictionary containing aggregated goodness-of-fit metrics (see
        config.GOODNESS_OF_FIT).

    Raises
    ------
    ValueError
        If `perc_factor` <= 0, input data are non-numeric, or contain NaN
        values while `remove_nan` is False.
    AssertionError
        If `observed` and `expected` differ in length.

    Notes
    -----
    - R-squared is not defined (None) if the observed values are constant.
    - Pairs with observed = expected = 0 have no sAPE and are ignored in sMAPE.

    Examples
    --------
    >>> obs = pd.Series([0.2, 0.4, 0.5])
    >>> exp = pd.Series([0.25, 0.35, 0.5])
    >>> residuals, metrics = modelfit(obs, exp)
    >>> metrics["RMSE"]
    """

    if perc_factor <= 0:
        raise ValueError("Parameter 'perc_factor' must be positive. Use perc_factor = 100 to get deviation-based metrics in percent")

    observed = pd.Series(np.asarray(observed))
    expected = pd.Series(np.asarray(expected))

    assert len(observed) == len(expected), "Error while calculating fit metrics: Observed and expected differ in length"

    if not is_numeric_dtype(observed):
        raise ValueError("Error while calculating fit metrics: Observed column is not numeric")
    if not is_numeric_dtype(expected):
        raise ValueError("Error while calculating fit metrics: Expected column is not numeric")

    if remove_nan:

        obs_exp = pd.DataFrame(
            {
                config.DEFAULT_OBSERVED_COL: observed,
                config.DEFAULT_EXPECTED_COL: expected
                }
            )

        obs_exp_clean = obs_exp.dropna(subset=[config.DEFAULT_OBSERVED_COL, config.DEFAULT_EXPECTED_COL])

        if len(obs_exp_clean) < len(observed):
            if verbose:
                print("NOTE: Vectors 'observed' and/or 'expected' contain NaNs which are dropped.")

        observed = obs_exp_clean[config.DEFAULT_OBSERVED_COL].to_numpy(dtype=float)
        expected = obs_exp_clean[config.DEFAULT_EXPECTED_COL].to_numpy(dtype=float)

    else:

        observed = observed.to_numpy(dtype=float)
        expected = expected.to_numpy(dtype=float)

        if np.isnan(observed).any():
            raise ValueError("Error while calculating fit metrics: Vector with observed data contains NaNs and 'remove_nan' is False")
        if np.isnan(expected).any():
            raise ValueError("Error while calculating fit metrics: Vector with expected data contains NaNs and 'remove_nan' is False")

    observed_no = len(observed)

    if observed_no == 0:
        raise ValueError("Error while calculating fit metrics: No complete observed/expected pairs")

    residuals = observed-expected
    residuals_sq = residuals**2
    residuals_abs = abs(residuals)

    sAPE_denominator = (abs(observed)+abs(expected))/2
    sAPE = np.full_like(observed, np.nan)
    sAPE_defined = sAPE_denominator > 0
    sAPE[sAPE_defined] = residuals_abs[sAPE_defined]/sAPE_denominator[sAPE_defined]*perc_factor

    data_residuals = pd.DataFrame({
        config.DEFAULT_OBSERVED_COL: observed,
        config.DEFAULT_EXPECTED_COL: expected,
        "residuals": residuals,
        "residuals_sq": residuals_sq,
        "residuals_abs": residuals_abs,
        "sAPE": sAPE
        })

    SQR = float(np.sum(residuals_sq))
    SAR = float(np.sum(residuals_abs))
    observed_mean = float(np.mean(observed))
    SQT = float(np.sum((observed-observed_mean)**2))
    Rsq = float(1-(SQR/SQT)) if SQT > 0 else None
    MSE = float(SQR/observed_no)
    RMSE = float(sqrt(MSE))
    MAE = float(SAR/observed_no)
    sMAPE = float(np.mean(sAPE[sAPE_defined])) if sAPE_defined.any() else None

    data_lossfunctions = {
        config.GOODNESS_OF_FIT["Sum of squared residuals"]: SQR,
        config.GOODNESS_OF_FIT["Sum of absolute residuals"]: SAR,
        config.GOODNESS_OF_FIT["R-squared"]: Rsq,
        config.GOODNESS_OF_FIT["Mean squared error"]: MSE,
        config.GOODNESS_OF_FIT["Root mean squared error"]: RMSE,
        config.GOODNESS_OF_FIT["Mean absolute error"]: MAE,
        config.GOODNESS_OF_FIT["Symmetric MAPE"]: sMAPE,
    }

    modelfit_results = [
        data_residuals,
        data_lossfunctions
    ]

    return modelfit_results

def modelfit_plot(
    observed,
    expected,
    remove_nan: bool = True,
    title: str = "Observed vs. expected",
    x_lab: str = "Observed",
    y_lab: str = "Expected",
    points_col: str = "steelblue",
    points_alpha: float = 0.5,
    figsize: tuple = (8,6),
    show_diag: list | None = None,
    round_float: int = 3,
    grid: bool = True,
    diagonale: bool = True,
    diagonale_col = "black",
    legend_fontsize = "small",
    save_as: str = None,
    save_dpi: int = 300,
    show_plot: bool = False,
    verbose: bool = False
    ):

    """
    Create an observed-vs-expected scatter plot annotated with selected
    goodness-of-fit metrics.

    Parameters
    ----------
    observed, expected : array-like
        Observed and expected values, see `modelfit()`.
    show_diag : list, optional
        Goodness-of-fit metric names shown in the legend (default: ["Rsq", "RMSE"];
        available metrics: see config.GOODNESS_OF_FIT.values()).
    save_as : str or None, optional
        File path for saving the plot. If None, the plot is not saved.
    show_plot : bool, optional
        If True, display the plot using matplotlib.

    Returns
    -------
    list
        [output of `modelfit()`, matplotlib Figure]
    """

    if show_diag is None:
        show_diag = ["Rsq", "RMSE"]

    observed_expected_modelfit = modelfit(
        observed = observed,
        expected = expected,
        remove_nan = remove_nan,
        verbose = verbose
        )

    residuals_df = observed_expected_modelfit[0]

    all_values = np.concatenate([
        residuals_df[config.DEFAULT_OBSERVED_COL].to_numpy(),
        residuals_df[config.DEFAULT_EXPECTED_COL].to_numpy()
        ])
    min_value = np.min(all_values)
    max_value = np.max(all_values)

    label = ""
    for key, value in observed_expected_modelfit[1].items():
        if key in show_diag and value is not None:
            label = f"{label}{key}={round(value, round_float)} "

    fig = plt.figure(figsize=figsize)

    if diagonale:
        diagonal = np.linspace(
            min_value,
            max_value,
            100
            )
        plt.plot(
            diagonal,
            diagonal,
            color=diagonale_col
            )

    plt.scatter(
        residuals_df[config.DEFAULT_OBSERVED_COL],
        residuals_df[config.DEFAULT_EXPECTED_COL],
        color=points_col,
        alpha=points_alpha,
        label=label.strip()
    )

    plt.xlim(min_value, max_value)
    plt.ylim(min_value, max_value)
    plt.xlabel(x_lab)
    plt.ylabel(y_lab)
    plt.title(title)
    plt.legend(fontsize=legend_fontsize)
    if grid:
        plt.grid(True)

    if save_as is not None:
        plt.savefig(save_as, dpi=save_dpi)

    if show_plot:
        plt.show()

    return [
        observed_expected_modelfit,
        fig
        ]

def draws_plot(
    draws_df: pd.DataFrame,
    area,
    year = None,
    layout: str = "long",
    title: str = None,
    figsize: tuple = (8,6),
    mean_col = "black",
    grid: bool = True,
    save_as: str = None,
    save_dpi: int = 300,
    show_plot: bool = False
    ):

    """
    Plot the spread of the coefficient draws for one origin area.

    For destination draws (long layout) a boxplot per destination region is
    drawn with the mean prediction marked. For frequency draws (wide layout)
    the leaving probabilities of all draws are shown as a histogram per year.

    Parameters
    ----------
    draws_df : pandas.DataFrame
        Output of `Draws.get_draws_df()`.
    area : str
        Origin area (areaId).
    year : int, optional
        Survey year; if None, all years of the area are used.
    layout : {"long", "wide"}, optional
        Layout of `draws_df`.

    Returns
    -------
    matplotlib.figure.Figure
        The plot.

    Raises
    ------
    ValueError
        If the area/year combination is not in `draws_df`.
    """

    area_df = draws_df[draws_df[config.DEFAULT_COLNAME_AREA] == area]

    if year is not None:
        area_df = area_df[area_df[config.DEFAULT_COLNAME_YEAR] == year]

    if len(area_df) == 0:
        raise ValueError(f"Error while plotting draws: Area {area} (year {year}) not in draws")

    if title is None:
        title = f"Draws for area {area}" if year is None else f"Draws for area {area} ({year})"

    fig, ax = plt.subplots(figsize=figsize)

    if layout == "wide":

        draw_cols = [col for col in area_df.columns if col.startswith(config.DRAW_PREFIX) and col != config.DRAW_MEAN]

        for _, row in area_df.iterrows():
            ax.hist(
                row[draw_cols].to_numpy(dtype=float),
                alpha=0.5,
                label=str(row[config.DEFAULT_COLNAME_YEAR])
                )
            ax.axvline(
                row[config.DRAW_MEAN],
                color=mean_col
                )

        ax.set_xlabel(config.DEFAULT_COLNAME_LEAVE_PROB)
        ax.set_ylabel("Frequency")
        ax.legend(fontsize="small")

    else:

        sampled_df = area_df[area_df[config.DEFAULT_COLNAME_DRAW] != config.DRAW_MEAN]
        mean_df = area_df[area_df[config.DEFAULT_COLNAME_DRAW] == config.DRAW_MEAN]

        ax.boxplot(
            [sampled_df[destination].to_numpy(dtype=float) for destination in config.DESTINATIONS_LIST]
            )
        ax.set_xticks(
            range(1, len(config.DESTINATIONS_LIST)+1),
            config.DESTINATIONS_LIST
            )

        for position, destination in enumerate(config.DESTINATIONS_LIST, start=1):
            ax.scatter(
                np.full(len(mean_df), position),
                mean_df[destination],
                color=mean_col,
                marker="x"
                )

        ax.set_xlabel(config.DEFAULT_COLNAME_DESTINATION)
        ax.set_ylabel("Probability")

    ax.set_title(title)
    if grid:
        ax.grid(True)

    if save_as is not None:
        fig.savefig(save_as, dpi=save_dpi)

    if show_plot:
        plt.show()

    return fig
