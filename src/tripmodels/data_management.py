#-----------------------------------------------------------------------
# Name:        data_management (tripmodels package)
# Purpose:     Trip model data management functions
# Author:      Thomas Wieland
#              ORCID: 0000-0001-5168-9846
#              mail: geowieland@googlemail.com
# Version:     1.0.0
# Last update: 2026-10-18 11:25
# Copyright (c) 2024-2026 Thomas Wieland
#-----------------------------------------------------------------------


import numpy as np
import pandas as pd
from tripmodels.models import TravelSurvey, Draws
import tripmodels.helper as helper
import tripmodels.config as config


def read_table(
    data,
    table_name: str,
    data_type = "csv",
    csv_sep = config.OUTPUT_CSV_SEP,
    csv_decimal = ".",
    csv_encoding = "utf-8",
    xlsx_sheet: str = None
    ) -> pd.DataFrame:

    """
    Read one input table from a DataFrame, a CSV file or an XLSX file.

    Parameters
    ----------
    data : str or pandas.DataFrame
        File path or DataFrame.
    table_name : str
        Name of the table used in error messages (e.g. "survey data").
    data_type : {"csv", "xlsx"}, default="csv"
        File type if loading from disk.
    csv_sep : str, default=","
        Column separator for CSV files.
    csv_decimal : str, default="."
        Decimal mark for CSV files.
    csv_encoding : str, default="utf-8"
        Encoding used in CSV files.
    xlsx_sheet : str, optional
        Excel sheet name if reading from an XLSX file.

    Returns
    -------
    pandas.DataFrame
        A copy of the input table.

    Raises
    ------
    TypeError
        If `data` is neither a DataFrame nor a file path.
    ValueError
        If `data_type` is not 'csv' or 'xlsx'.
    """

    if isinstance(data, pd.DataFrame):
        return data.copy()

    if not isinstance(data, str):
        raise TypeError(f"Error while loading {table_name}: param 'data' must be pandas.DataFrame or file (.csv, .xlsx)")

    if data_type not in ["csv", "xlsx"]:
        raise ValueError(f"Error while loading {table_name}: param 'data_type' must be 'csv' or 'xlsx'")

    if data_type == "csv":
        df = pd.read_csv(
            data,
            sep = csv_sep,
            decimal = csv_decimal,
            encoding = csv_encoding
            )
    elif xlsx_sheet is not None:
        df = pd.read_excel(
            data,
            sheet_name=xlsx_sheet
            )
    else:
        df = pd.read_excel(data)

    return df

def destination_populations(
    travel_data_df: pd.DataFrame,
    n_years: int = None,
    ad2_col: str = config.DEFAULT_COLNAME_AD2,
    year_col: str = config.DEFAULT_COLNAME_YEAR,
    population_col: str = config.DEFAULT_COLNAME_POPULATION
    ) -> pd.DataFrame:

    """
    Build the destination region table with aggregate populations.

    The population of an island destination is the summed population of all
    survey rows of its member regions (see `config.DESTINATIONS`), divided
    evenly across the survey years. The off-island destination has a fixed
    population.

    Parameters
    ----------
    travel_data_df : pandas.DataFrame
        Joined travel data (one row per area and survey year).
    n_years : int, optional
        Number of survey years the populations are spread over. Defaults to
        the number of distinct years in `travel_data_df`.

    Returns
    -------
    pandas.DataFrame
        One row per destination, in category order, with the columns
        `dest_reg`, `name`, `distance_col` and `dest_pop`.
    """

    if n_years is None:
        n_years = travel_data_df[year_col].nunique()

    if n_years <= 0:
        raise ValueError("Error while calculating destination populations: Number of survey years must be positive")

    destinations_rows = []

    for code, destination in config.DESTINATIONS.items():

        if destination["population"] is not None:
            dest_pop = destination["population"]
        else:
            member_rows = travel_data_df[travel_data_df[ad2_col].isin(destination["ad2"])]
            dest_pop = int(np.round(member_rows[population_col].sum()/n_years))

        destinations_rows.append({
            config.DEFAULT_COLNAME_DESTINATION: code,
            "name": destination["name"],
            "distance_col": destination["distance_col"],
            config.DEFAULT_COLNAME_DEST_POP: dest_pop
        })

    return pd.DataFrame(destinations_rows)

def load_travel_data(
    survey_data,
    distance_data,
    area_col: str = config.DEFAULT_COLNAME_AREA,
    ad2_col: str = config.DEFAULT_COLNAME_AD2,
    year_col: str = config.DEFAULT_COLNAME_YEAR,
    n_col: str = config.DEFAULT_COLNAME_N,
    trips_col: str = "trip.counts",
    population_col: str = config.DEFAULT_COLNAME_POPULATION,
    n_years: int = None,
    data_type = "csv",
    csv_sep = config.OUTPUT_CSV_SEP,
    csv_decimal = ".",
    csv_encoding = "utf-8",
    xlsx_sheet: str = None,
    check_df_vars: bool = True,
    verbose: bool = config.VERBOSE
    ):

    """
    Load the aggregated travel survey and the travel distance table and join them.

    The survey table holds one row per area (`areaId`) and survey year with the
    number of surveyed persons (`n`), the number of persons who left home
    (`trip.counts`), the reported trips per destination region (`t_eg`,
    `ti_ban`, ...) and the population. The distance table holds one row per
    area with the distance to every destination region (`dist.eg`,
    `dist.ban`, ...). Both are joined on the area column (inner join:
    survey rows without distances are dropped). Column names with dots are
    replaced by underscores, key columns are renamed to the package defaults,
    and trip counts exceeding the number surveyed are clamped.

    Parameters
    ----------
    survey_data : str or pandas.DataFrame
        Aggregated survey table (file path or DataFrame).
    distance_data : str or pandas.DataFrame
        Travel distance table (file path or DataFrame).
    area_col, ad2_col, year_col, n_col, trips_col, population_col : str
        Names of the key columns in the input tables.
    n_years : int, optional
        Number of survey years destination populations are spread over.
        Defaults to the number of distinct survey years.
    data_type : {"csv", "xlsx"}, default="csv"
        File type if loading from disk (applies to both tables).
    csv_sep : str, default=","
        Column separator for CSV files.
    csv_decimal : str, default="."
        Decimal mark for CSV files.
    csv_encoding : str, default="utf-8"
        Encoding used in CSV files.
    xlsx_sheet : str, optional
        Excel sheet name if reading from XLSX files.
    check_df_vars : bool, default=True
        If True, validates count, population and distance columns using
        `helper.check_vars`.
    verbose : bool, optional
        If True, print progress information.

    Returns
    -------
    TravelSurvey
        Container with the joined travel data, the destination table and metadata.

    Raises
    ------
    KeyError
        If required columns are missing from the input data.

    Examples
    --------
    >>> travel_survey = load_travel_data(
    ...     survey_data="data/aggregated_2015_2018_travel_data.csv",
    ...     distance_data="data/travel_dist_by_region.csv"
    ... )
    >>> travel_survey.summary()
    """

    if verbose:
        print("Loading travel survey and distance data", end = " ... ")

    survey_df = read_table(
        survey_data,
        table_name = "travel data",
        data_type = data_type,
        csv_sep = csv_sep,
        csv_decimal = csv_decimal,
        csv_encoding = csv_encoding,
        xlsx_sheet = xlsx_sheet
        )
    distance_df = read_table(
        distance_data,
        table_name = "travel distance data",
        data_type = data_type,
        csv_sep = csv_sep,
        csv_decimal = csv_decimal,
        csv_encoding = csv_encoding,
        xlsx_sheet = xlsx_sheet
        )

    key_cols = {
        area_col: config.DEFAULT_COLNAME_AREA,
        ad2_col: config.DEFAULT_COLNAME_AD2,
        year_col: config.DEFAULT_COLNAME_YEAR,
        n_col: config.DEFAULT_COLNAME_N,
        trips_col: config.DEFAULT_COLNAME_TRIPS,
        population_col: config.DEFAULT_COLNAME_POPULATION
        }

    for key_col in key_cols.keys():
        if key_col not in survey_df.columns:
            raise KeyError(f"Error while loading travel data: Column {key_col} not in survey data")

    if area_col not in distance_df.columns:
        raise KeyError(f"Error while loading travel data: Column {area_col} not in distance data")

    survey_df = survey_df.rename(columns = key_cols)
    survey_df = survey_df.rename(columns = config.INPUT_COLNAME_REPLACEMENTS)
    distance_df = distance_df.rename(columns = {area_col: config.DEFAULT_COLNAME_AREA})
    distance_df = distance_df.rename(columns = config.INPUT_COLNAME_REPLACEMENTS)

    cols_missing = [col for col in config.DESTINATIONS_LIST if col not in survey_df.columns]
    if len(cols_missing) > 0:
        raise KeyError(f"Error while loading travel data: Destination column(s) {', '.join(cols_missing)} not in survey data")

    cols_missing = [col for col in config.DISTANCE_COLS_LIST if col not in distance_df.columns]
    if len(cols_missing) > 0:
        raise KeyError(f"Error while loading travel data: Distance column(s) {', '.join(cols_missing)} not in distance data")

    survey_cols = list(key_cols.values()) + config.DESTINATIONS_LIST
    distance_cols = [config.DEFAULT_COLNAME_AREA] + config.DISTANCE_COLS_LIST

    survey_df = survey_df[survey_cols]
    distance_df = distance_df[distance_cols]

    travel_data_df = survey_df.merge(
        distance_df,
        on = config.DEFAULT_COLNAME_AREA,
        how = "inner"
        )

    dropped_rows = len(survey_df) - len(travel_data_df)

    if check_df_vars:
        helper.check_vars(
            travel_data_df,
            cols = [
                config.DEFAULT_COLNAME_N,
                config.DEFAULT_COLNAME_TRIPS,
                config.DEFAULT_COLNAME_POPULATION
                ] + config.DESTINATIONS_LIST + config.DISTANCE_COLS_LIST
            )

    travel_data_df, clamped_rows = clamp_trip_counts(travel_data_df)

    travel_data_df[config.DEFAULT_COLNAME_DIST_CAPITAL] = travel_data_df[config.CAPITAL_DISTANCE_COL]

    travel_data_df = travel_data_df.sort_values(
        by = [
            config.DEFAULT_COLNAME_AREA,
            config.DEFAULT_COLNAME_YEAR
            ]
        ).reset_index(drop=True)

    destinations_df = destination_populations(
        travel_data_df,
        n_years = n_years
        )

    metadata = {
        "no_rows": len(travel_data_df),
        "no_areas": travel_data_df[config.DEFAULT_COLNAME_AREA].nunique(),
        "no_ad2": travel_data_df[config.DEFAULT_COLNAME_AD2].nunique(),
        "years": sorted(travel_data_df[config.DEFAULT_COLNAME_YEAR].unique().tolist()),
        "n_years": n_years if n_years is not None else travel_data_df[config.DEFAULT_COLNAME_YEAR].nunique(),
        "dropped_rows": dropped_rows,
        "clamped_rows": clamped_rows,
        "input_cols": key_cols
        }

    travel_survey = TravelSurvey(
        travel_data_df,
        destinations_df,
        metadata
        )

    helper.add_timestamp(
        travel_survey,
        function="data_management.load_travel_data",
        process="Creation by import and join of survey and distance data"
        )

    if verbose:
        print("OK")
        if dropped_rows > 0:
            print(f"NOTE: {dropped_rows} survey row(s) without distance data were dropped.")
        if clamped_rows > 0:
            print(f"NOTE: Trip counts of {clamped_rows} row(s) exceeded the number surveyed and were set to n.")

    return travel_survey

def clamp_trip_counts(
    travel_data_df: pd.DataFrame,
    trips_col: str = config.DEFAULT_COLNAME_TRIPS,
    n_col: str = config.DEFAULT_COLNAME_N
    ):

    """
    Clamp the number of persons who left home to the number surveyed.

    Returns
    -------
    list
        [clamped DataFrame, number of rows changed]
    """

    travel_data_df = travel_data_df.copy()

    exceeding = travel_data_df[trips_col] > travel_data_df[n_col]

    travel_data_df.loc[exceeding, trips_col] = travel_data_df.loc[exceeding, n_col]

    return [
        travel_data_df,
        int(exceeding.sum())
        ]

def write_predictions(
    predictions,
    output_filepath: str,
    csv_sep: str = config.OUTPUT_CSV_SEP,
    verbose: bool = config.VERBOSE
    ):

    """
    Write a prediction table to a CSV file (full overwrite).

    Parameters
    ----------
    predictions : Draws or pandas.DataFrame
        Prediction table or Draws object (as returned by the draws() methods).
    output_filepath : str
        Target file path.
    csv_sep : str, default=","
        Column separator.
    verbose : bool, optional
        If True, print progress information.

    Returns
    -------
    pandas.DataFrame
        The written table.

    Examples
    --------
    >>> frequency_draws = frequency_model.draws(n_draws=100, seed=1)
    >>> write_predictions(frequency_draws, "trip_frequency_model_estimates.csv")
    """

    if isinstance(predictions, Draws):
        predictions_df = predictions.get_draws_df()
    elif isinstance(predictions, pd.DataFrame):
        predictions_df = predictions
    else:
        raise TypeError("Error while writing predictions: param 'predictions' must be Draws or pandas.DataFrame")

    if verbose:
        print(f"Writing {len(predictions_df)} rows to {output_filepath}", end = " ... ")

    predictions_df.to_csv(
        output_filepath,
        sep = csv_sep,
        index = False,
        mode = "w"
        )

    if verbose:
        print("OK")

    return predictions_df
