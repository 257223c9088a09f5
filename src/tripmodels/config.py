#-----------------------------------------------------------------------
# Name:        config (tripmodels package)
# Purpose:     Trip model configuration and constants
# Author:      Thomas Wieland
#              ORCID: 0000-0001-5168-9846
#              mail: geowieland@googlemail.com
# Version:     1.0.0
# Last update: 2026-10-18 10:12
# Copyright (c) 2024-2026 Thomas Wieland
#-----------------------------------------------------------------------


# Package

PACKAGE_NAME = "tripmodels"
PACKAGE_VERSION = "1.0.0"

VERBOSE = False


# Column names of the joined travel data

DEFAULT_COLNAME_AREA = "areaId"
DEFAULT_COLNAME_AD2 = "ad2"
DEFAULT_COLNAME_YEAR = "year"
DEFAULT_COLNAME_N = "n"
DEFAULT_COLNAME_TRIPS = "trip_counts"
DEFAULT_COLNAME_POPULATION = "pop"
DEFAULT_COLNAME_DIST_CAPITAL = "dist_from_capital"

DEFAULT_COLNAME_LEAVE_PROB = "leave_prob"
DEFAULT_COLNAME_LEAVE_FREQ = "leave_freq"

DEFAULT_COLNAME_DESTINATION = "dest_reg"
DEFAULT_COLNAME_DEST_POP = "dest_pop"
DEFAULT_COLNAME_DISTANCE = "distance"
DEFAULT_COLNAME_COUNTS = "counts"
DEFAULT_COLNAME_EXPECTED_TRIPS = "gravity_model_trip_counts"
DEFAULT_COLNAME_WEIGHT = "weight"
DEFAULT_COLNAME_DRAW = "draw"

DEFAULT_TOTAL_SUFFIX = "_total"

# Input names with dots are not usable in formulas
INPUT_COLNAME_REPLACEMENTS = {
    "trip.counts": DEFAULT_COLNAME_TRIPS,
    "dist.eg": "dist_eg",
    "dist.ban": "dist_ban",
    "dist.lub": "dist_lub",
    "dist.mal": "dist_mal",
    "dist.mok": "dist_mok",
    "dist.ria": "dist_ria",
    "dist.ure": "dist_ure",
    }


# Destination regions
# Order is the category order of the destination models,
# the first entry is the reference category

DESTINATIONS = {
    "t_eg": {
        "name": "Off-island",
        "distance_col": "dist_eg",
        "ad2": [],
        "population": 1071785
        },
    "ti_ban": {
        "name": "Baney",
        "distance_col": "dist_ban",
        "ad2": ["Baney"],
        "population": None
        },
    "ti_lub": {
        "name": "Luba",
        "distance_col": "dist_lub",
        "ad2": ["Luba"],
        "population": None
        },
    "ti_mal": {
        "name": "Malabo",
        "distance_col": "dist_mal",
        "ad2": ["Malabo", "Peri"],
        "population": None
        },
    "ti_mok": {
        "name": "Moka",
        "distance_col": "dist_mok",
        "ad2": ["Moka"],
        "population": None
        },
    "ti_ria": {
        "name": "Riaba",
        "distance_col": "dist_ria",
        "ad2": ["Riaba"],
        "population": None
        },
    "ti_ure": {
        "name": "Ureka",
        "distance_col": "dist_ure",
        "ad2": ["Ureka"],
        "population": None
        },
    }
DESTINATIONS_LIST = list(DESTINATIONS.keys())
DISTANCE_COLS_LIST = [value["distance_col"] for value in DESTINATIONS.values()]

OFF_ISLAND = "t_eg"
OFF_ISLAND_AREA = "off_island"
CAPITAL_DISTANCE_COL = "dist_mal"


# Models

MODELS = {
    "Frequency": {
        "description": "Binomial trip frequency model",
        "method": "GLM (binomial, logit link)"
        },
    "Multinomial": {
        "description": "Multinomial logit destination choice model",
        "method": "MNLogit"
        },
    "NegBin": {
        "description": "Negative binomial gravity model",
        "method": "NB2 (log link), near/far regimes"
        },
    }

SURVEY_PERIOD_DAYS = 56

MNL_MAXITER = 1000
MNL_METHOD = "newton"

NB_DISTANCE_CUTOFF = 20000
NB_OFFSET_CONSTANT = 0.1
NB_MAXITER = 1000
NB_METHOD = "newton"
NB_START_ALPHA = 0.5
NB_REGIMES = ["near", "far"]

GLM_MAXITER = 100


# Draws

N_DRAWS = 100
NB_CANDIDATE_DRAWS = 250
NB_DEGENERATE_AD2 = "Ureka"
NB_DEGENERATE_YEAR = 2018

DRAW_PREFIX = "draw."
DRAW_MEAN = "draw.mean"

ROWSUM_TOLERANCE = 1e-9

PERMITTED_AREA_WEIGHTINGS = {
    "population": "Proportional to area population",
    "equal": "Equal share per area"
    }


# Output

OUTPUT_FREQUENCY = "trip_frequency_model_estimates.csv"
OUTPUT_MULTINOMIAL = "multinomial_predictions_by_destination_region.csv"
OUTPUT_NEGBIN = "negative_binomial_predictions_by_destination_region.csv"
OUTPUT_CSV_SEP = ","


# Summaries

SUMMARY_WIDTH = 26
SUMMARY_NOT_DEFINED = "Not defined"
FLOAT_ROUND = 5


# Goodness of fit

DEFAULT_OBSERVED_COL = "observed"
DEFAULT_EXPECTED_COL = "expected"

GOODNESS_OF_FIT = {
    "Sum of squared residuals": "SQR",
    "Sum of absolute residuals": "SAR",
    "R-squared": "Rsq",
    "Mean squared error": "MSE",
    "Root mean squared error": "RMSE",
    "Mean absolute error": "MAE",
    "Symmetric MAPE": "sMAPE",
    }
