#-----------------------------------------------------------------------
# Name:        helper (tripmodels package)
# Purpose:     Trip model helper functions
# Author:      Thomas Wieland
#              ORCID: 0000-0001-5168-9846
#              mail: geowieland@googlemail.com
# Version:     1.0.0
# Last update: 2026-10-18 10:40
# Copyright (c) 2024-2026 Thomas Wieland
#-----------------------------------------------------------------------

from datetime import datetime
import pandas as pd
import tripmodels.config as config


def check_vars(
    df: pd.DataFrame,
    cols: list,
    check_numeric: bool = True,
    check_negative: bool = True,
    check_constant: bool = False
    ):

    """
    Validate selected columns of a DataFrame for suitability in model fitting.

    This function checks whether specified columns exist in the DataFrame and optionally
    verifies that they are numeric, non-negative, and non-constant.
    If any check fails, a descriptive Exception is raised summarizing all detected issues.

    Parameters
    ----------
    df : pandas.DataFrame
        Input DataFrame containing the variables to be validated.
    cols : list of str
        List of column names to be checked.
    check_numeric : bool, default=True
        If True, checks whether all specified columns contain numeric values.
    check_negative : bool, default=True
        If True, checks whether columns contain values less than zero
        (counts, populations and distances must not be negative).
    check_constant : bool, default=False
        If True, checks whether columns contain constant values only.

    Raises
    ------
    Exception
        If one or more (desired) validation checks fail (missing columns, non-numeric values,
        negative values, or constant columns).

    Examples
    --------
    >>> df = pd.DataFrame({"n": [10, 20, 30], "pop": [400, 500, 600]})
    >>> check_vars(df, ["n", "pop"])

    >>> df = pd.DataFrame({"n": [10, -1, 30]})
    >>> check_vars(df, ["n"])
    Traceback (most recent call last):
        ...
    Exception: The following error(s) occured with respect to the input dataframe: Column(s) n include(s) values < 0. All values must be numeric and non-negative.
    """

    errors = []

    cols_missing = [col for col in cols if col not in df.columns]

    if len(cols_missing) > 0:
        errors.append(f"Column(s) {', '.join(cols_missing)} not in dataframe.")

    cols = [col for col in cols if col not in cols_missing]

    if check_numeric:

        cols_not_numeric = [col for col in cols if not check_numeric_series(df[col])]

        if len(cols_not_numeric) > 0:
            errors.append(f"Non-numeric column(s): {', '.join(cols_not_numeric)}. All stated columns must be numeric.")

        cols = [col for col in cols if col not in cols_not_numeric]

    if check_negative:

        cols_negative = []

        for col in cols:

            if (df[col] < 0).any():
                cols_negative.append(col)

        if len(cols_negative) > 0:
            errors.append(f"Column(s) {', '.join(cols_negative)} include(s) values < 0. All values must be numeric and non-negative.")

    if check_constant:

        cols_constant = [col for col in cols if check_constant_values(df[col])]

        if len(cols_constant) > 0:
            errors.append(f"Column(s) {', '.join(cols_constant)} are constant.")

    if len(errors) > 0:

        raise Exception(f"The following error(s) occured with respect to the input dataframe: {' '.join(errors)}")

def check_numeric_series(values):

    """
    Check whether a sequence contains numeric values only.
    This function is used within `check_vars()`.

    Parameters
    ----------
    values : array-like or pandas.Series
        Input values to be checked.

    Returns
    -------
    bool
        True if values are numeric, False otherwise.
    """

    if not isinstance(values, pd.Series):
        values = pd.Series(values)

    return pd.api.types.is_numeric_dtype(values)

def check_constant_values(values):

    """
    Check whether a sequence contains constant values only.
    This function is used within `check_vars()`.
    """

    if not isinstance(values, pd.Series):
        values = pd.Series(values)

    return values.nunique() == 1

def draw_label(i):

    """
    Return the label of draw `i` (e.g. 'draw.7').
    """

    return f"{config.DRAW_PREFIX}{i}"

def create_timestamp(
    function: str,
    process: str = "Update",
    status: str = "OK"
    ):

    """
    Create a timestamp dictionary for logging function processes.
    This function is called by `add_timestamp()`.

    Parameters
    ----------
    function : str
        Name of the function creating the timestamp.
    process : str, optional
        Description of the process (default: "Update").
    status : str, optional
        Process status label (default: "OK").

    Returns
    -------
    dict
        Dictionary containing package version, function name, process,
        timestamp, and status.
    """

    now = datetime.now()

    timestamp_dict = {
        "package_version": f"{config.PACKAGE_NAME} {config.PACKAGE_VERSION}",
        "function": function,
        "process": process,
        "datetime": now.strftime("%Y-%m-%d %H-%M-%S"),
        "status": status
    }

    return timestamp_dict

def add_timestamp(
    obj,
    function: str,
    process: str = "Update",
    status: str = "OK",
    verbose: bool = False
    ):

    """
    Add a timestamp entry to an object's metadata.
    This function is called every time an object of the library's internal
    classes (e.g., TravelSurvey) is created or modified.

    Parameters
    ----------
    obj : object
        Object to which the timestamp metadata is added.
    function : str
        Name of the function creating the timestamp.
    process : str, optional
        Description of the process (default: "Update").
    status : str, optional
        Process status label (default: "OK").
    verbose : bool, optional
        If True, print informational messages (default: False).

    Returns
    -------
    object
        The input object with updated timestamp metadata.

    Examples
    --------
    >>> add_timestamp(
    ...     frequency_model,
    ...     function="models.FrequencyModel.draws",
    ...     process="Performed 100 draws"
    ... )
    """

    obj_class = obj.__class__.__name__

    if getattr(obj, "metadata", None) is None:

        if verbose:
            print(f"The class {obj_class} object does not include metadata yet.")

        obj.metadata = {}

    if "timestamp" not in obj.metadata:

        obj.metadata["timestamp"] = {}

    timestamp_dict = create_timestamp(
        function=function,
        process=process,
        status=status
        )

    next_timestamp_index = max(obj.metadata["timestamp"].keys(), default=-1) + 1

    obj.metadata["timestamp"][next_timestamp_index] = timestamp_dict

    return obj

def print_timestamp(
    obj
    ):

    """
    Print timestamp metadata of an object of the library's internal
    classes (e.g., MultinomialModel).

    Parameters
    ----------
    obj : object
        Object with timestamp metadata.

    Returns
    -------
    dict or None
        Timestamp metadata if present, otherwise None.
    """

    obj_class = obj.__class__.__name__

    metadata = getattr(obj, "metadata", None)

    if metadata is None:

        print(f"Object of class {obj_class} has no metadata")

        return None

    if "timestamp" not in metadata:

        print(f"Object of class {obj_class} has no timestamps in the metadata")

        return None

    print(f"Timestamps for class {obj_class} object")

    col_green = "\033[92m"
    col_red = "\033[91m"
    col_reset = "\033[0m"

    for key, value in metadata["timestamp"].items():

        check_sign = "✔"
        check_sign_color = col_green
        error_message = ""

        if value["status"] != "OK":
            check_sign = "✖"
            check_sign_color = col_red
            error_message = f"| {value['status']}"

        print(f"[{value['datetime']}] {check_sign_color}{check_sign}{col_reset} {value['package_version']} | Step {key} | {value['function']} | {value['process']} {error_message}")

    return metadata["timestamp"]

def print_summary_row(
    output_name,
    output_value,
    width=config.SUMMARY_WIDTH
    ):

    """
    Print a formatted name-value pair for model summaries.
    This function is a helper function for the summary() methods in the `models` module.

    Parameters
    ----------
    output_name : str
        Label of the output value.
    output_value : any
        Value to print.
    width : int, optional
        Field width for alignment (default is 26).
    """

    value = output_value if output_value is not None else config.SUMMARY_NOT_DEFINED
    print(f"{output_name:<{width}} {value}")

def coefficients_table(
    params,
    bse,
    pvalues
    ):

    """
    Build a rounded coefficient table for the summary() methods of the
    fitted model classes.

    Parameters
    ----------
    params, bse, pvalues : pandas.Series
        Estimates, standard errors and p values indexed by coefficient name.

    Returns
    -------
    pandas.DataFrame
        One row per coefficient.
    """

    coefficients_rows = []

    for coef_name in params.index:

        coefficients_rows.append({
            "": coef_name,
            "Estimate": round(float(params[coef_name]), config.FLOAT_ROUND),
            "SE": round(float(bse[coef_name]), config.FLOAT_ROUND),
            "p": round(float(pvalues[coef_name]), config.FLOAT_ROUND)
        })

    return pd.DataFrame(coefficients_rows)

def print_modelfit(modelfit_results):

    """
    Print goodness-of-fit statistics of an output from the function `modelfit()`.

    Parameters
    ----------
    modelfit_results : list
        Output from the function `modelfit()` containing goodness-of-fit values.

    Returns
    -------
    list
        The unchanged model fitting results.
    """

    maxlen = max(len(str(key)) for key in config.GOODNESS_OF_FIT.keys())

    for gof_key, gof_value in config.GOODNESS_OF_FIT.items():

        if modelfit_results[1][gof_value] is not None:
            print(f"{gof_key:<{maxlen}}  {round(modelfit_results[1][gof_value], 2)}")

    return modelfit_results
