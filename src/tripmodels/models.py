#-----------------------------------------------------------------------
# Name:        models (tripmodels package)
# Purpose:     Trip frequency and destination choice model classes and functions
# Author:      Thomas Wieland
#              ORCID: 0000-0001-5168-9846
#              mail: geowieland@googlemail.com
# Version:     1.0.0
# Last update: 2026-10-18 15:02
# Copyright (c) 2024-2026 Thomas Wieland
#-----------------------------------------------------------------------


import re
import numpy as np
import pandas as pd
import patsy
import statsmodels.api as sm
from statsmodels.discrete.discrete_model import MNLogit, NegativeBinomial
from statsmodels.tools.sm_exceptions import PerfectSeparationError
from scipy.stats import multivariate_normal
import tripmodels.helper as helper
import tripmodels.config as config
import tripmodels.goodness_of_fit as gof


LINKS = {
    "logit": sm.families.links.Logit,
    "log": sm.families.links.Log
    }


class ModelFitError(Exception):
    """
    Error class for failed model estimations (non-convergence, singular
    design, perfect separation)
    """
    pass

class TravelSurvey:

    """
    Container for the joined travel survey and travel distance data.

    One row per area (`areaId`) and survey year. All models are fitted
    from this object.

    Parameters
    ----------
    travel_data_df : pandas.DataFrame
        Joined survey and distance data (see `data_management.load_travel_data`).
    destinations_df : pandas.DataFrame
        Destination regions in category order with aggregate populations.
    metadata : dict
        Metadata about the survey data and processing steps.
    """

    def __init__(
        self,
        travel_data_df,
        destinations_df,
        metadata
        ):

        self.travel_data_df = travel_data_df
        self.destinations_df = destinations_df
        self.metadata = metadata

    def get_travel_data_df(self):

        """
        Return the joined travel data.

        Returns
        -------
        pandas.DataFrame
            The travel data contained in `self.travel_data_df`.
        """

        return self.travel_data_df

    def get_destinations_df(self):

        """
        Return the destination region table.

        Returns
        -------
        pandas.DataFrame
            Destination codes, names, distance columns and populations.
        """

        return self.destinations_df

    def get_metadata(self):

        return self.metadata

    def summary(self):

        """
        Print a summary of the TravelSurvey object (rows, areas, years, destinations).

        Returns
        -------
        dict
            Metadata associated with this TravelSurvey object.
        """

        metadata = self.metadata

        print("Travel survey")
        print("======================================")

        helper.print_summary_row(
            "No. rows",
            metadata["no_rows"]
        )
        helper.print_summary_row(
            "No. areas",
            metadata["no_areas"]
        )
        helper.print_summary_row(
            "No. admin regions",
            metadata["no_ad2"]
        )
        helper.print_summary_row(
            "Survey years",
            ", ".join(str(year) for year in metadata["years"])
        )
        helper.print_summary_row(
            "Rows without distances",
            metadata["dropped_rows"]
        )
        helper.print_summary_row(
            "Clamped trip counts",
            metadata["clamped_rows"]
        )

        print("--------------------------------------")

        print("Destinations")

        print(self.destinations_df.to_string(index=False))

        print("--------------------------------------")

        return metadata

    def show_log(self):

        """
        Shows all timestamp logs of the TravelSurvey object
        """

        timestamp = helper.print_timestamp(self)
        return timestamp

    def ad2_indicators(self):

        """
        One-hot indicator columns for the origin administrative regions.

        Returns
        -------
        list
            [DataFrame with one 0/1 column per region aligned with the travel
            data, dict mapping region name to indicator column name]
        """

        travel_data_df = self.travel_data_df

        regions = sorted(travel_data_df[config.DEFAULT_COLNAME_AD2].unique())

        indicator_cols = {region: indicator_colname(region) for region in regions}

        indicators_df = pd.DataFrame(index=travel_data_df.index)

        for region, col in indicator_cols.items():
            indicators_df[col] = (travel_data_df[config.DEFAULT_COLNAME_AD2] == region).astype(int)

        return [
            indicators_df,
            indicator_cols
            ]

    def destination_table(
        self,
        include_indicators: bool = False
        ):

        """
        Reshape the travel data into long form with one row per origin row
        and destination region.

        Every row carries the reported trips to the destination
        (`counts`), the distance to it (`distance`) and its aggregate
        population (`dest_pop`), besides all origin columns.

        Parameters
        ----------
        include_indicators : bool, optional
            If True, the one-hot origin region indicators are attached.

        Returns
        -------
        pandas.DataFrame
            Long table, destinations in category order within each origin row.
            The column `origin_row` refers to the index of the travel data.
        """

        travel_data_df = self.travel_data_df.copy()

        if include_indicators:
            indicators_df = self.ad2_indicators()[0]
            travel_data_df = pd.concat([travel_data_df, indicators_df], axis=1)

        travel_data_df["origin_row"] = travel_data_df.index

        destination_tables = []

        for order, (code, destination) in enumerate(config.DESTINATIONS.items()):

            destination_df = travel_data_df.copy()
            destination_df[config.DEFAULT_COLNAME_DESTINATION] = code
            destination_df["dest_order"] = order
            destination_df[config.DEFAULT_COLNAME_COUNTS] = travel_data_df[code]
            destination_df[config.DEFAULT_COLNAME_DISTANCE] = travel_data_df[destination["distance_col"]]

            destination_tables.append(destination_df)

        long_df = pd.concat(destination_tables, ignore_index=True)

        long_df = long_df.merge(
            self.destinations_df[[config.DEFAULT_COLNAME_DESTINATION, config.DEFAULT_COLNAME_DEST_POP]],
            on = config.DEFAULT_COLNAME_DESTINATION,
            how = "left"
            )

        long_df = long_df.sort_values(
            by = ["origin_row", "dest_order"]
            ).reset_index(drop=True)

        return long_df

    def frequency_fit(
        self,
        maxiter: int = config.GLM_MAXITER,
        survey_period_days: int = config.SURVEY_PERIOD_DAYS,
        verbose: bool = config.VERBOSE
        ):

        """
        Estimate the binomial trip frequency model.

        The probability of leaving home is modelled as a binomial choice with
        successes = persons who left (`trip_counts`) and trials = persons
        surveyed (`n`), using a logit link and the covariates population,
        administrative region (categorical) and distance to the capital.
        Rows with no persons surveyed do not enter the fit but are predicted.

        Parameters
        ----------
        maxiter : int, optional
            Maximum number of IRLS iterations.
        survey_period_days : int, optional
            Length of the survey recall period in days, used to derive the
            daily leaving rate (default: 56).
        verbose : bool, optional
            If True, print progress information during the estimation.

        Returns
        -------
        FrequencyModel
            Fitted model with leaving probabilities (`leave_prob`) and daily
            leaving rates (`leave_freq`) per row.

        Raises
        ------
        ModelFitError
            If the estimation fails or does not converge.

        Example
        --------
        >>> frequency_model = travel_survey.frequency_fit()
        >>> frequency_model.summary()
        """

        travel_data_df = self.travel_data_df.copy()

        helper.check_vars(
            travel_data_df,
            cols = [
                config.DEFAULT_COLNAME_N,
                config.DEFAULT_COLNAME_TRIPS,
                config.DEFAULT_COLNAME_POPULATION,
                config.CAPITAL_DISTANCE_COL
                ]
            )

        if verbose:
            print(f"Performing {config.MODELS['Frequency']['description']} estimation", end = " ... ")

        formula = f"{config.DEFAULT_COLNAME_POPULATION} + C({config.DEFAULT_COLNAME_AD2}) + {config.CAPITAL_DISTANCE_COL}"

        fit_df = travel_data_df[travel_data_df[config.DEFAULT_COLNAME_N] > 0]

        design_matrix = patsy.dmatrix(
            formula,
            fit_df,
            return_type="dataframe",
            NA_action="raise"
            )

        successes = fit_df[config.DEFAULT_COLNAME_TRIPS].to_numpy(dtype=float)
        failures = fit_df[config.DEFAULT_COLNAME_N].to_numpy(dtype=float) - successes

        endog = np.column_stack([successes, failures])

        try:

            glm_results = sm.GLM(
                endog,
                design_matrix,
                family=sm.families.Binomial(link=sm.families.links.Logit())
                ).fit(maxiter=maxiter)

        except (np.linalg.LinAlgError, PerfectSeparationError, ValueError) as err:
            raise ModelFitError(f"Error while fitting {config.MODELS['Frequency']['description']}: {err}") from err

        if not glm_results.converged:
            raise ModelFitError(f"Error while fitting {config.MODELS['Frequency']['description']}: No convergence after {maxiter} iterations")

        check_estimates(
            glm_results,
            config.MODELS["Frequency"]["description"]
            )

        design_info = design_matrix.design_info

        try:
            predict_matrix = build_design_matrix(
                design_info,
                travel_data_df
                )
        except patsy.PatsyError as err:
            raise ModelFitError(f"Error while fitting {config.MODELS['Frequency']['description']}: Covariate levels not estimable from rows with n > 0 ({err})") from err

        travel_data_df[config.DEFAULT_COLNAME_LEAVE_PROB] = np.asarray(glm_results.predict(predict_matrix))
        travel_data_df[config.DEFAULT_COLNAME_LEAVE_FREQ] = travel_data_df[config.DEFAULT_COLNAME_LEAVE_PROB]/survey_period_days

        metadata = {
            "fit": {
                "function": "frequency_fit",
                "formula": f"cbind({config.DEFAULT_COLNAME_TRIPS}, {config.DEFAULT_COLNAME_N} - {config.DEFAULT_COLNAME_TRIPS}) ~ {formula}",
                "method": config.MODELS["Frequency"]["method"],
                "no_obs": len(fit_df),
                "survey_period_days": survey_period_days
                }
            }

        frequency_model = FrequencyModel(
            self,
            travel_data_df,
            glm_results,
            design_info,
            metadata
            )

        helper.add_timestamp(
            frequency_model,
            function="models.TravelSurvey.frequency_fit",
            process=f"Creation and {config.MODELS['Frequency']['description']} estimation"
            )

        if verbose:
            print("OK")
            if len(fit_df) < len(travel_data_df):
                print(f"NOTE: {len(travel_data_df)-len(fit_df)} row(s) with n = 0 were excluded from the fit.")

        return frequency_model

    def multinomial_fit(
        self,
        maxiter: int = config.MNL_MAXITER,
        method: str = config.MNL_METHOD,
        verbose: bool = config.VERBOSE
        ):

        """
        Estimate the multinomial logit destination choice model.

        The per-destination trip counts are reshaped into long form and
        expanded so that every row represents one reported trip. The
        destination region is regressed on origin population, the distances
        to all destination regions and the origin region indicators. The
        first region (sorted) is the omitted indicator, and the off-island
        destination (first in `config.DESTINATIONS`) is the reference category.

        Parameters
        ----------
        maxiter : int, optional
            Maximum number of iterations (default: 1000).
        method : str, optional
            statsmodels optimizer (default: 'newton').
        verbose : bool, optional
            If True, print progress information during the estimation.

        Returns
        -------
        MultinomialModel
            Fitted model with mean destination probabilities per origin row.

        Raises
        ------
        ModelFitError
            If a destination is never chosen, or the estimation fails or does
            not converge.

        Example
        --------
        >>> multinomial_model = travel_survey.multinomial_fit()
        >>> multinomial_draws = multinomial_model.draws(n_draws=100, seed=1)
        """

        indicators_df, indicator_cols = self.ad2_indicators()

        reference_ad2 = sorted(indicator_cols.keys())[0]

        covariates = [config.DEFAULT_COLNAME_POPULATION] + config.DISTANCE_COLS_LIST + [
            col for region, col in indicator_cols.items() if region != reference_ad2
            ]

        formula = " + ".join(covariates)

        long_df = self.destination_table(include_indicators=True)

        fit_df = long_df[long_df[config.DEFAULT_COLNAME_COUNTS] > 0]
        fit_df = fit_df.loc[fit_df.index.repeat(fit_df[config.DEFAULT_COLNAME_COUNTS].astype(int))].reset_index(drop=True)

        destinations_chosen = set(fit_df[config.DEFAULT_COLNAME_DESTINATION].unique())
        destinations_missing = [code for code in config.DESTINATIONS_LIST if code not in destinations_chosen]

        if len(destinations_missing) > 0:
            raise ModelFitError(f"Error while fitting {config.MODELS['Multinomial']['description']}: Destination(s) {', '.join(destinations_missing)} never chosen in survey data")

        if verbose:
            print(f"Performing {config.MODELS['Multinomial']['description']} estimation with {len(fit_df)} trips", end = " ... ")

        design_matrix = patsy.dmatrix(
            formula,
            fit_df,
            return_type="dataframe",
            NA_action="raise"
            )

        endog = fit_df["dest_order"].to_numpy()

        try:

            mnl_results = MNLogit(
                endog,
                design_matrix
                ).fit(
                    method=method,
                    maxiter=maxiter,
                    disp=False
                    )

        except (np.linalg.LinAlgError, PerfectSeparationError, ValueError) as err:
            raise ModelFitError(f"Error while fitting {config.MODELS['Multinomial']['description']}: {err}") from err

        if not mnl_results.mle_retvals.get("converged", False):
            raise ModelFitError(f"Error while fitting {config.MODELS['Multinomial']['description']}: No convergence after {maxiter} iterations")

        check_estimates(
            mnl_results,
            config.MODELS["Multinomial"]["description"]
            )

        design_info = design_matrix.design_info

        origin_df = pd.concat([self.travel_data_df, indicators_df], axis=1)

        origin_matrix = build_design_matrix(
            design_info,
            origin_df
            )

        mean_probabilities = np.asarray(mnl_results.predict(origin_matrix))

        metadata = {
            "fit": {
                "function": "multinomial_fit",
                "formula": f"{config.DEFAULT_COLNAME_DESTINATION} ~ {formula}",
                "method": config.MODELS["Multinomial"]["method"],
                "optimizer": method,
                "no_obs": len(fit_df),
                "reference_destination": config.DESTINATIONS_LIST[0],
                "reference_ad2": reference_ad2
                }
            }

        multinomial_model = MultinomialModel(
            self,
            origin_df,
            mnl_results,
            design_info,
            mean_probabilities,
            metadata
            )

        helper.add_timestamp(
            multinomial_model,
            function="models.TravelSurvey.multinomial_fit",
            process=f"Creation and {config.MODELS['Multinomial']['description']} estimation with variables: {', '.join(covariates)}"
            )

        if verbose:
            print("OK")

        return multinomial_model

    def negbin_fit(
        self,
        cutoff: float = config.NB_DISTANCE_CUTOFF,
        offset_constant: float = config.NB_OFFSET_CONSTANT,
        maxiter: int = config.NB_MAXITER,
        method: str = config.NB_METHOD,
        verbose: bool = config.VERBOSE
        ):

        """
        Estimate the two-regime negative binomial gravity model.

        The long destination table is split at a distance cutoff into near
        and far trips. Each regime is fitted by an NB2 regression (log link)
        of the trip counts on log origin population, log destination
        population, distance (linear for near, log for far), origin region
        and distance to the capital. The offset log((n + 0.1)/pop) accounts
        for the sampled fraction of the population.

        Parameters
        ----------
        cutoff : float, optional
            Distance separating near (< cutoff) and far (>= cutoff) trips
            (default: 20000).
        offset_constant : float, optional
            Constant added to the number surveyed in the offset (default: 0.1).
        maxiter : int, optional
            Maximum number of iterations.
        method : str, optional
            statsmodels optimizer (default: 'newton').
        verbose : bool, optional
            If True, print progress information during the estimation.

        Returns
        -------
        NegBinModel
            Fitted near and far models with mean destination weights.

        Raises
        ------
        ValueError
            If populations are not positive or a regime has no rows.
        ModelFitError
            If an estimation fails or does not converge.

        Example
        --------
        >>> negbin_model = travel_survey.negbin_fit()
        >>> negbin_draws = negbin_model.draws(n_draws=100, n_candidates=250, seed=1)
        """

        long_df = self.destination_table()

        if (long_df[config.DEFAULT_COLNAME_POPULATION] <= 0).any() or (long_df[config.DEFAULT_COLNAME_DEST_POP] <= 0).any():
            raise ValueError(f"Error while fitting {config.MODELS['NegBin']['description']}: Origin and destination populations must be positive")

        regimes = split_by_distance(
            long_df,
            cutoff = cutoff
            )

        formulas = {
            "near": f"{config.DEFAULT_COLNAME_COUNTS} ~ np.log({config.DEFAULT_COLNAME_POPULATION}) + np.log({config.DEFAULT_COLNAME_DEST_POP}) + {config.DEFAULT_COLNAME_DISTANCE} + C({config.DEFAULT_COLNAME_AD2}) + {config.DEFAULT_COLNAME_DIST_CAPITAL}",
            "far": f"{config.DEFAULT_COLNAME_COUNTS} ~ np.log({config.DEFAULT_COLNAME_POPULATION}) + np.log({config.DEFAULT_COLNAME_DEST_POP}) + np.log({config.DEFAULT_COLNAME_DISTANCE}) + C({config.DEFAULT_COLNAME_AD2}) + {config.DEFAULT_COLNAME_DIST_CAPITAL}"
            }

        nb_results = {}
        design_infos = {}

        for regime in config.NB_REGIMES:

            regime_df = regimes[regime]

            if len(regime_df) == 0:
                raise ValueError(f"Error while fitting {config.MODELS['NegBin']['description']}: No {regime} trips with cutoff {cutoff}")

            if verbose:
                print(f"Performing {config.MODELS['NegBin']['description']} estimation for {regime} trips ({len(regime_df)} rows)", end = " ... ")

            endog, design_matrix = patsy.dmatrices(
                formulas[regime],
                regime_df,
                return_type="dataframe",
                NA_action="raise"
                )

            offset = sampling_offset(
                regime_df,
                offset_constant = offset_constant
                )

            try:

                poisson_results = sm.GLM(
                    endog,
                    design_matrix,
                    family=sm.families.Poisson(),
                    offset=offset
                    ).fit()
                # Poisson estimates and alpha = 0.5 as start values

                results = NegativeBinomial(
                    endog,
                    design_matrix,
                    offset=offset
                    ).fit(
                        start_params=np.append(np.asarray(poisson_results.params), config.NB_START_ALPHA),
                        method=method,
                        maxiter=maxiter,
                        disp=False
                        )

            except (np.linalg.LinAlgError, ValueError) as err:
                raise ModelFitError(f"Error while fitting {config.MODELS['NegBin']['description']} ({regime}): {err}") from err

            if not results.mle_retvals.get("converged", False):
                raise ModelFitError(f"Error while fitting {config.MODELS['NegBin']['description']} ({regime}): No convergence after {maxiter} iterations")

            check_estimates(
                results,
                f"{config.MODELS['NegBin']['description']} ({regime})"
                )

            nb_results[regime] = results
            design_infos[regime] = design_matrix.design_info

            if verbose:
                print("OK")

        metadata = {
            "fit": {
                "function": "negbin_fit",
                "formulas": formulas,
                "method": config.MODELS["NegBin"]["method"],
                "optimizer": method,
                "cutoff": cutoff,
                "offset_constant": offset_constant,
                "no_obs": {regime: len(regimes[regime]) for regime in config.NB_REGIMES}
                }
            }

        negbin_model = NegBinModel(
            self,
            long_df,
            nb_results,
            design_infos,
            metadata
            )

        helper.add_timestamp(
            negbin_model,
            function="models.TravelSurvey.negbin_fit",
            process=f"Creation and {config.MODELS['NegBin']['description']} estimation with cutoff {cutoff}"
            )

        return negbin_model

class Draws:

    """
    Container for the mean prediction and the coefficient draws of a fitted model.

    The per-draw predictions are kept as an ordered mapping from draw label
    ('draw.mean', 'draw.1', ...) to prediction and are combined into one
    table only by `get_draws_df()`.

    Parameters
    ----------
    draws_dict : dict
        Ordered mapping of draw label to prediction. For the wide layout the
        values are arrays (one value per row of `id_df`), for the long layout
        DataFrames.
    id_df : pandas.DataFrame
        Identifier columns of the prediction rows.
    layout : {"wide", "long"}
        'wide': one column per draw (frequency model),
        'long': one block of rows per draw with a 'draw' column (destination models).
    metadata : dict
        Metadata about the model and the draw procedure.
    """

    def __init__(
        self,
        draws_dict,
        id_df,
        layout,
        metadata
        ):

        self.draws_dict = draws_dict
        self.id_df = id_df
        self.layout = layout
        self.metadata = metadata

    def get_draws_dict(self):

        return self.draws_dict

    def get_metadata(self):

        return self.metadata

    def get_labels(self):

        """
        Return the draw labels in order, starting with 'draw.mean'.
        """

        return list(self.draws_dict.keys())

    def get_draw(
        self,
        label: str
        ):

        """
        Return the prediction table of a single draw.

        Parameters
        ----------
        label : str
            Draw label, e.g. 'draw.mean' or 'draw.12'.

        Returns
        -------
        pandas.DataFrame
            Identifier columns plus the predicted values of the draw.
        """

        if label not in self.draws_dict:
            raise KeyError(f"Error while retrieving draw: Draw {label} not in draws")

        if self.layout == "wide":
            draw_df = self.id_df.copy()
            draw_df[label] = self.draws_dict[label]
            return draw_df

        return self.draws_dict[label]

    def get_draws_df(self):

        """
        Combine all draws into one prediction table.

        Returns
        -------
        pandas.DataFrame
            Wide layout: identifier columns plus one column per draw.
            Long layout: all draw blocks stacked in draw order.
        """

        if self.layout == "wide":

            draws_values_df = pd.DataFrame(
                {label: np.asarray(values) for label, values in self.draws_dict.items()},
                index=self.id_df.index
                )

            return pd.concat([self.id_df, draws_values_df], axis=1).reset_index(drop=True)

        return pd.concat(list(self.draws_dict.values()), ignore_index=True)

    def rowsums(self):

        """
        Row sums of the destination columns per draw (long layout only).

        Returns
        -------
        pandas.Series
            Row sums of all rows of `get_draws_df()`.
        """

        if self.layout != "long":
            raise ValueError("Error while calculating row sums: Only destination draws (long layout) have row sums")

        draws_df = self.get_draws_df()

        return draws_df[config.DESTINATIONS_LIST].sum(axis=1)

    def summary(self):

        """
        Print a summary of the draws.

        Returns
        -------
        dict
            Metadata associated with this Draws object.
        """

        metadata = self.metadata

        print(f"Draws: {config.MODELS[metadata['model']]['description']}")
        print("======================================")

        helper.print_summary_row(
            "No. draws",
            len(self.draws_dict) - 1
        )
        helper.print_summary_row(
            "No. draws requested",
            metadata["n_draws"]
        )
        helper.print_summary_row(
            "No. candidates",
            metadata.get("n_candidates")
        )
        helper.print_summary_row(
            "No. rows per draw",
            len(self.id_df)
        )
        helper.print_summary_row(
            "Seed",
            metadata["seed"]
        )

        print("--------------------------------------")

        return metadata

    def show_log(self):

        """
        Shows all timestamp logs of the Draws object
        """

        timestamp = helper.print_timestamp(self)
        return timestamp

    def plot(
        self,
        area,
        year = None,
        save_as: str = None,
        show_plot: bool = False
        ):

        """
        Plot the spread of the draws for one area, see `goodness_of_fit.draws_plot()`.
        """

        return gof.draws_plot(
            self.get_draws_df(),
            area = area,
            year = year,
            layout = self.layout,
            save_as = save_as,
            show_plot = show_plot
            )

    def to_csv(
        self,
        output_filepath: str,
        csv_sep: str = config.OUTPUT_CSV_SEP
        ):

        """
        Write the combined draws table to a CSV file (full overwrite).
        """

        draws_df = self.get_draws_df()

        draws_df.to_csv(
            output_filepath,
            sep = csv_sep,
            index = False,
            mode = "w"
            )

        helper.add_timestamp(
            self,
            function="models.Draws.to_csv",
            process=f"Saved draws as {output_filepath}"
            )

        return draws_df

class FrequencyModel:

    """
    Container for a fitted binomial trip frequency model.

    Parameters
    ----------
    travel_survey : TravelSurvey
        The survey the model was fitted on.
    frequency_data_df : pandas.DataFrame
        Travel data with leaving probabilities and daily leaving rates.
    glm_results : statsmodels.genmod.generalized_linear_model.GLMResults
        The fitted binomial GLM.
    design_info : patsy.DesignInfo
        Design of the covariate matrix, used to rebuild it for new data.
    metadata : dict
        Metadata related to the estimation.
    """

    def __init__(
        self,
        travel_survey: TravelSurvey,
        frequency_data_df,
        glm_results,
        design_info,
        metadata
        ):

        self.travel_survey = travel_survey
        self.frequency_data_df = frequency_data_df
        self.glm_results = glm_results
        self.design_info = design_info
        self.metadata = metadata

    def get_frequency_data_df(self):

        """
        Return the travel data with `leave_prob` and `leave_freq` columns.
        """

        return self.frequency_data_df

    def get_glm_results(self):

        return self.glm_results

    def get_coefficients(self):

        """
        Return the fitted coefficients and their covariance matrix.

        Returns
        -------
        list
            [pandas.Series of coefficients, pandas.DataFrame covariance matrix]
        """

        return [
            self.glm_results.params,
            self.glm_results.cov_params()
            ]

    def get_metadata(self):

        return self.metadata

    def design_matrix(
        self,
        data: pd.DataFrame = None
        ):

        """
        Build the covariate matrix for the travel data or for new data.
        """

        if data is None:
            data = self.frequency_data_df

        return build_design_matrix(
            self.design_info,
            data
            )

    def predict(
        self,
        data: pd.DataFrame = None,
        coefficients = None
        ):

        """
        Predict leaving probabilities.

        Parameters
        ----------
        data : pandas.DataFrame, optional
            Covariate rows (population, region, distance to capital).
            Defaults to the travel data the model was fitted on.
        coefficients : array-like, optional
            Coefficient vector replacing the fitted coefficients (e.g. a draw).

        Returns
        -------
        numpy.ndarray
            Leaving probabilities.
        """

        if coefficients is None:
            coefficients = self.glm_results.params

        return predict_with_coefficients(
            self.design_matrix(data),
            "logit",
            coefficients
            )

    def modelfit(self):

        """
        Compute goodness-of-fit metrics for observed vs. predicted leaving probabilities.

        Returns
        -------
        list or None
            Output of `goodness_of_fit.modelfit()`, or None if no row has
            persons surveyed.
        """

        frequency_data_df = self.frequency_data_df
        frequency_data_df = frequency_data_df[frequency_data_df[config.DEFAULT_COLNAME_N] > 0]

        if len(frequency_data_df) == 0:
            return None

        observed = frequency_data_df[config.DEFAULT_COLNAME_TRIPS]/frequency_data_df[config.DEFAULT_COLNAME_N]

        return gof.modelfit(
            observed,
            frequency_data_df[config.DEFAULT_COLNAME_LEAVE_PROB]
            )

    def summary(self):

        """
        Print a concise summary of the frequency model.

        Returns
        -------
        list
            [fit metadata, goodness-of-fit results]
        """

        glm_results = self.glm_results
        metadata = self.metadata

        print(config.MODELS["Frequency"]["description"])
        print("============================================")

        helper.print_summary_row(
            "Method",
            metadata["fit"]["method"]
        )
        helper.print_summary_row(
            "No. observations",
            metadata["fit"]["no_obs"]
        )
        helper.print_summary_row(
            "Survey period (days)",
            metadata["fit"]["survey_period_days"]
        )
        helper.print_summary_row(
            "AIC",
            round(float(glm_results.aic), 2)
        )

        print("--------------------------------------------")

        print("Coefficients")

        coefficients_df = helper.coefficients_table(
            glm_results.params,
            glm_results.bse,
            glm_results.pvalues
            )

        print(coefficients_df.to_string(index=False))

        frequency_modelfit = self.modelfit()

        if frequency_modelfit is not None:

            print("--------------------------------------------")

            print("Goodness-of-fit for leaving probabilities")

            helper.print_modelfit(frequency_modelfit)

        print("============================================")

        return [
            metadata["fit"],
            frequency_modelfit
            ]

    def show_log(self):

        """
        Shows all timestamp logs of the FrequencyModel object
        """

        timestamp = helper.print_timestamp(self)
        return timestamp

    def draws(
        self,
        n_draws: int = config.N_DRAWS,
        seed = None,
        verbose: bool = config.VERBOSE
        ):

        """
        Propagate coefficient uncertainty into the leaving probabilities.

        Coefficient vectors are sampled from the multivariate normal
        approximation of the estimator (mean = fitted coefficients,
        covariance = fitted covariance matrix) and the leaving probabilities
        are recomputed for every sample.

        Parameters
        ----------
        n_draws : int, optional
            Number of draws (default: 100).
        seed : int or numpy.random.Generator, optional
            Seed of the random number generator.
        verbose : bool, optional
            If True, print progress information.

        Returns
        -------
        Draws
            Wide layout with the columns areaId, year, draw.mean, draw.1 ... draw.n.

        Example
        --------
        >>> frequency_draws = frequency_model.draws(n_draws=100, seed=42)
        >>> frequency_draws.get_draws_df()
        """

        if verbose:
            print(f"Performing {n_draws} draws for {config.MODELS['Frequency']['description']}", end = " ... ")

        coefficients, cov = self.get_coefficients()

        sampled_coefficients = sample_coefficients(
            coefficients,
            cov,
            n_draws = n_draws,
            seed = seed
            )

        design_matrix = self.design_matrix()

        draws_dict = {config.DRAW_MEAN: self.frequency_data_df[config.DEFAULT_COLNAME_LEAVE_PROB].to_numpy()}

        for i, draw_coefficients in enumerate(sampled_coefficients, start=1):

            draws_dict[helper.draw_label(i)] = predict_with_coefficients(
                design_matrix,
                "logit",
                draw_coefficients
                )

        id_df = self.frequency_data_df[[config.DEFAULT_COLNAME_AREA, config.DEFAULT_COLNAME_YEAR]]

        metadata = {
            "model": "Frequency",
            "n_draws": n_draws,
            "seed": seed if not isinstance(seed, np.random.Generator) else "Generator"
            }

        frequency_draws = Draws(
            draws_dict,
            id_df,
            "wide",
            metadata
            )

        helper.add_timestamp(
            frequency_draws,
            function="models.FrequencyModel.draws",
            process=f"Performed {n_draws} draws"
            )

        if verbose:
            print("OK")

        return frequency_draws

class MultinomialModel:

    """
    Container for a fitted multinomial logit destination choice model.

    Parameters
    ----------
    travel_survey : TravelSurvey
        The survey the model was fitted on.
    origin_df : pandas.DataFrame
        Travel data with origin region indicators (one row per origin row).
    mnl_results : statsmodels.discrete.discrete_model.MultinomialResults
        The fitted MNLogit model.
    design_info : patsy.DesignInfo
        Design of the covariate matrix.
    mean_probabilities : numpy.ndarray
        Predicted destination probabilities per origin row (library predict path).
    metadata : dict
        Metadata related to the estimation.
    """

    def __init__(
        self,
        travel_survey: TravelSurvey,
        origin_df,
        mnl_results,
        design_info,
        mean_probabilities,
        metadata
        ):

        self.travel_survey = travel_survey
        self.origin_df = origin_df
        self.mnl_results = mnl_results
        self.design_info = design_info
        self.mean_probabilities = mean_probabilities
        self.metadata = metadata

    def get_origin_df(self):

        return self.origin_df

    def get_mnl_results(self):

        return self.mnl_results

    def get_metadata(self):

        return self.metadata

    def get_coefficients(self):

        """
        Return the coefficient matrix and the covariance matrix of its
        flattened form.

        The coefficient matrix has one row per covariate and one column per
        non-reference destination. The covariance matrix refers to the
        coefficients flattened equation by equation (column-major), which is
        the layout statsmodels uses for MNLogit.

        Returns
        -------
        list
            [pandas.DataFrame coefficient matrix, numpy.ndarray covariance matrix]
        """

        coefficients = pd.DataFrame(
            np.asarray(self.mnl_results.params),
            index=self.design_info.column_names,
            columns=config.DESTINATIONS_LIST[1:]
            )

        cov = np.asarray(self.mnl_results.cov_params())

        return [
            coefficients,
            cov
            ]

    def design_matrix(self):

        """
        Covariate matrix of the origin rows (intercept first).
        """

        return build_design_matrix(
            self.design_info,
            self.origin_df
            )

    def predict(
        self,
        coefficients = None
        ):

        """
        Compute destination probabilities for all origin rows analytically.

        Parameters
        ----------
        coefficients : array-like, optional
            Coefficient matrix (covariates x non-reference destinations)
            replacing the fitted coefficients.

        Returns
        -------
        numpy.ndarray
            Probabilities, one row per origin row, one column per destination
            in `config.DESTINATIONS_LIST` order.
        """

        if coefficients is None:
            coefficients = self.get_coefficients()[0]

        return multinomial_probabilities(
            self.design_matrix(),
            coefficients,
            reference = 0
            )

    def predictions_table(
        self,
        probabilities,
        draw: str = config.DRAW_MEAN
        ):

        """
        Attach origin identifiers and the draw label to a probability matrix.

        Returns
        -------
        pandas.DataFrame
            Columns areaId, ad2, pop, year, draw and one column per destination.
        """

        predictions_df = self.origin_df[[
            config.DEFAULT_COLNAME_AREA,
            config.DEFAULT_COLNAME_AD2,
            config.DEFAULT_COLNAME_POPULATION,
            config.DEFAULT_COLNAME_YEAR
            ]].copy()

        predictions_df[config.DEFAULT_COLNAME_DRAW] = draw

        probabilities_df = pd.DataFrame(
            np.asarray(probabilities),
            columns=config.DESTINATIONS_LIST,
            index=predictions_df.index
            )

        return pd.concat([predictions_df, probabilities_df], axis=1).reset_index(drop=True)

    def modelfit(self):

        """
        Compute goodness-of-fit metrics for observed destination shares vs.
        predicted probabilities (origin rows with at least one trip).
        """

        origin_df = self.origin_df

        observed_counts = origin_df[config.DESTINATIONS_LIST].to_numpy(dtype=float)
        totals = observed_counts.sum(axis=1)

        with_trips = totals > 0

        if not with_trips.any():
            return None

        observed = observed_counts[with_trips]/totals[with_trips, None]
        expected = self.mean_probabilities[with_trips]

        return gof.modelfit(
            pd.Series(observed.ravel()),
            pd.Series(expected.ravel())
            )

    def summary(self):

        """
        Print a concise summary of the multinomial model (one coefficient
        table per non-reference destination).

        Returns
        -------
        list
            [fit metadata, goodness-of-fit results]
        """

        mnl_results = self.mnl_results
        metadata = self.metadata

        print(config.MODELS["Multinomial"]["description"])
        print("============================================")

        helper.print_summary_row(
            "Method",
            metadata["fit"]["method"]
        )
        helper.print_summary_row(
            "No. trips",
            metadata["fit"]["no_obs"]
        )
        helper.print_summary_row(
            "Reference destination",
            metadata["fit"]["reference_destination"]
        )
        helper.print_summary_row(
            "Reference region",
            metadata["fit"]["reference_ad2"]
        )
        helper.print_summary_row(
            "AIC",
            round(float(mnl_results.aic), 2)
        )

        params = np.asarray(mnl_results.params)
        bse = np.asarray(mnl_results.bse)
        pvalues = np.asarray(mnl_results.pvalues)

        for j, destination in enumerate(config.DESTINATIONS_LIST[1:]):

            print("--------------------------------------------")

            print(f"Coefficients {destination} vs. {metadata['fit']['reference_destination']}")

            coefficients_df = helper.coefficients_table(
                pd.Series(params[:, j], index=self.design_info.column_names),
                pd.Series(bse[:, j], index=self.design_info.column_names),
                pd.Series(pvalues[:, j], index=self.design_info.column_names)
                )

            print(coefficients_df.to_string(index=False))

        multinomial_modelfit = self.modelfit()

        if multinomial_modelfit is not None:

            print("--------------------------------------------")

            print("Goodness-of-fit for destination shares")

            helper.print_modelfit(multinomial_modelfit)

        print("============================================")

        return [
            metadata["fit"],
            multinomial_modelfit
            ]

    def show_log(self):

        """
        Shows all timestamp logs of the MultinomialModel object
        """

        timestamp = helper.print_timestamp(self)
        return timestamp

    def draws(
        self,
        n_draws: int = config.N_DRAWS,
        seed = None,
        verbose: bool = config.VERBOSE
        ):

        """
        Propagate coefficient uncertainty into the destination probabilities.

        Flattened coefficient matrices are sampled from the multivariate
        normal approximation of the estimator. For every sample the
        probabilities are computed analytically with
        `multinomial_probabilities()` (off-island destination as reference).

        Parameters
        ----------
        n_draws : int, optional
            Number of draws (default: 100).
        seed : int or numpy.random.Generator, optional
            Seed of the random number generator.
        verbose : bool, optional
            If True, print progress information.

        Returns
        -------
        Draws
            Long layout with the columns areaId, ad2, pop, year, draw and
            one probability column per destination.
        """

        if verbose:
            print(f"Performing {n_draws} draws for {config.MODELS['Multinomial']['description']}", end = " ... ")

        coefficients, cov = self.get_coefficients()

        n_covariates, n_equations = coefficients.shape

        sampled_coefficients = sample_coefficients(
            coefficients.to_numpy().ravel(order="F"),
            cov,
            n_draws = n_draws,
            seed = seed
            )

        design_matrix = self.design_matrix()

        draws_dict = {config.DRAW_MEAN: self.predictions_table(self.mean_probabilities)}

        for i, draw_coefficients in enumerate(sampled_coefficients, start=1):

            draw_coefficients = draw_coefficients.reshape(n_covariates, n_equations, order="F")

            draw_probabilities = multinomial_probabilities(
                design_matrix,
                draw_coefficients,
                reference = 0
                )

            draws_dict[helper.draw_label(i)] = self.predictions_table(
                draw_probabilities,
                draw = helper.draw_label(i)
                )

        id_df = self.origin_df[[
            config.DEFAULT_COLNAME_AREA,
            config.DEFAULT_COLNAME_AD2,
            config.DEFAULT_COLNAME_POPULATION,
            config.DEFAULT_COLNAME_YEAR
            ]]

        metadata = {
            "model": "Multinomial",
            "n_draws": n_draws,
            "seed": seed if not isinstance(seed, np.random.Generator) else "Generator"
            }

        multinomial_draws = Draws(
            draws_dict,
            id_df,
            "long",
            metadata
            )

        helper.add_timestamp(
            multinomial_draws,
            function="models.MultinomialModel.draws",
            process=f"Performed {n_draws} draws"
            )

        if verbose:
            print("OK")

        return multinomial_draws

class NegBinModel:

    """
    Container for a fitted two-regime negative binomial gravity model.

    Parameters
    ----------
    travel_survey : TravelSurvey
        The survey the model was fitted on.
    long_df : pandas.DataFrame
        Long destination table (one row per origin row and destination).
    nb_results : dict
        Fitted statsmodels NegativeBinomial results for 'near' and 'far'.
    design_infos : dict
        patsy design information for 'near' and 'far'.
    metadata : dict
        Metadata related to the estimation.
    """

    def __init__(
        self,
        travel_survey: TravelSurvey,
        long_df,
        nb_results,
        design_infos,
        metadata
        ):

        self.travel_survey = travel_survey
        self.long_df = long_df
        self.nb_results = nb_results
        self.design_infos = design_infos
        self.metadata = metadata

    def get_long_df(self):

        return self.long_df

    def get_nb_results(self):

        return self.nb_results

    def get_metadata(self):

        return self.metadata

    def get_coefficients(
        self,
        regime: str
        ):

        """
        Return the regression coefficients of one regime and their
        covariance matrix. The dispersion parameter alpha is excluded.

        Parameters
        ----------
        regime : {"near", "far"}
            Distance regime.

        Returns
        -------
        list
            [pandas.Series of coefficients, pandas.DataFrame covariance matrix]
        """

        if regime not in config.NB_REGIMES:
            raise KeyError(f"Error while retrieving coefficients: Regime must be one of {', '.join(config.NB_REGIMES)}")

        results = self.nb_results[regime]

        coef_names = self.design_infos[regime].column_names

        coefficients = results.params[coef_names]
        cov = results.cov_params().loc[coef_names, coef_names]

        return [
            coefficients,
            cov
            ]

    def scaled_data(self):

        """
        Long table with the number surveyed set to the population, split
        into regimes. Predicting on it projects from the sampled survey
        population to the full population.

        Returns
        -------
        dict
            DataFrames for 'near' and 'far'.
        """

        scaled_df = self.long_df.copy()
        scaled_df[config.DEFAULT_COLNAME_N] = scaled_df[config.DEFAULT_COLNAME_POPULATION]

        return split_by_distance(
            scaled_df,
            cutoff = self.metadata["fit"]["cutoff"]
            )

    def predict(
        self,
        coefficients: dict = None
        ):

        """
        Predict destination weights for the full population.

        Expected trip counts are predicted for both regimes on the scaled
        data and normalized per origin row (areaId, year) so that the
        weights over destinations sum to 1.

        Parameters
        ----------
        coefficients : dict, optional
            Coefficient vectors for 'near' and 'far' replacing the fitted
            coefficients.

        Returns
        -------
        pandas.DataFrame
            Columns areaId, year, ad2, pop and one weight column per destination.
        """

        if coefficients is None:
            coefficients = {regime: self.get_coefficients(regime)[0] for regime in config.NB_REGIMES}

        scaled_regimes = self.scaled_data()

        expected_regimes = []

        for regime in config.NB_REGIMES:

            regime_df = scaled_regimes[regime].copy()

            regime_df[config.DEFAULT_COLNAME_EXPECTED_TRIPS] = predict_with_coefficients(
                build_design_matrix(
                    self.design_infos[regime],
                    regime_df
                    ),
                "log",
                coefficients[regime],
                offset = sampling_offset(
                    regime_df,
                    offset_constant = self.metadata["fit"]["offset_constant"]
                    )
                )

            expected_regimes.append(regime_df)

        expected_df = pd.concat(expected_regimes)

        expected_df = normalize_weights(
            expected_df,
            value_col = config.DEFAULT_COLNAME_EXPECTED_TRIPS,
            ref_cols = [config.DEFAULT_COLNAME_AREA, config.DEFAULT_COLNAME_YEAR]
            )

        id_cols = [
            config.DEFAULT_COLNAME_AREA,
            config.DEFAULT_COLNAME_YEAR,
            config.DEFAULT_COLNAME_AD2,
            config.DEFAULT_COLNAME_POPULATION
            ]

        weights_df = expected_df.pivot(
            index = id_cols,
            columns = config.DEFAULT_COLNAME_DESTINATION,
            values = config.DEFAULT_COLNAME_WEIGHT
            )

        weights_df = weights_df.reindex(columns=config.DESTINATIONS_LIST).reset_index()
        weights_df.columns.name = None

        return weights_df

    def summary(self):

        """
        Print a concise summary of both regimes of the negative binomial model.

        Returns
        -------
        dict
            Fit metadata.
        """

        metadata = self.metadata

        print(config.MODELS["NegBin"]["description"])
        print("============================================")

        helper.print_summary_row(
            "Method",
            metadata["fit"]["method"]
        )
        helper.print_summary_row(
            "Distance cutoff",
            metadata["fit"]["cutoff"]
        )

        for regime in config.NB_REGIMES:

            results = self.nb_results[regime]

            print("--------------------------------------------")

            print(f"Regime: {regime}")

            helper.print_summary_row(
                "No. observations",
                metadata["fit"]["no_obs"][regime]
            )
            helper.print_summary_row(
                "AIC",
                round(float(results.aic), 2)
            )
            helper.print_summary_row(
                "alpha",
                round(float(np.asarray(results.params)[-1]), config.FLOAT_ROUND)
            )

            coefficients_df = helper.coefficients_table(
                results.params.iloc[:-1],
                results.bse.iloc[:-1],
                results.pvalues.iloc[:-1]
                )

            print(coefficients_df.to_string(index=False))

        print("============================================")

        return metadata["fit"]

    def show_log(self):

        """
        Shows all timestamp logs of the NegBinModel object
        """

        timestamp = helper.print_timestamp(self)
        return timestamp

    def draws(
        self,
        n_draws: int = config.N_DRAWS,
        n_candidates: int = config.NB_CANDIDATE_DRAWS,
        seed = None,
        check_ad2: str = config.NB_DEGENERATE_AD2,
        check_year = config.NB_DEGENERATE_YEAR,
        verbose: bool = config.VERBOSE
        ):

        """
        Propagate coefficient uncertainty into the destination weights.

        Candidate coefficient vectors are sampled separately for the near
        and far regimes. Each candidate pair yields a full weight table; it is
        kept if `valid_weights()` accepts it (no NaN or negative weights, and
        a positive off-island weight for the low-travel region in the check
        year). Valid candidates are labelled consecutively until `n_draws`
        are kept. If the candidates run out, fewer draws are returned.

        Parameters
        ----------
        n_draws : int, optional
            Number of draws to keep (default: 100).
        n_candidates : int, optional
            Number of candidate draws (default: 250).
        seed : int or numpy.random.Generator, optional
            Seed of the random number generator.
        check_ad2 : str, optional
            Low-travel region whose off-island weight must be positive.
        check_year : int, optional
            Survey year of the check.
        verbose : bool, optional
            If True, print progress information.

        Returns
        -------
        Draws
            Long layout with the columns areaId, year, ad2, pop, draw and one
            weight column per destination.
        """

        if n_candidates < n_draws:
            raise ValueError("Error while performing draws: 'n_candidates' must not be smaller than 'n_draws'")

        if verbose:
            print(f"Performing up to {n_draws} draws from {n_candidates} candidates for {config.MODELS['NegBin']['description']}", end = " ... ")

        rng = np.random.default_rng(seed)

        sampled_coefficients = {}

        for regime in config.NB_REGIMES:

            coefficients, cov = self.get_coefficients(regime)

            sampled_coefficients[regime] = sample_coefficients(
                coefficients,
                cov,
                n_draws = n_candidates,
                seed = rng
                )

        mean_df = self.predict()
        mean_df[config.DEFAULT_COLNAME_DRAW] = config.DRAW_MEAN

        draws_dict = {config.DRAW_MEAN: order_weight_columns(mean_df)}

        discarded = 0

        for candidate in range(n_candidates):

            if len(draws_dict) - 1 >= n_draws:
                break

            candidate_df = self.predict(
                coefficients = {regime: sampled_coefficients[regime][candidate] for regime in config.NB_REGIMES}
                )

            if not valid_weights(
                candidate_df,
                check_ad2 = check_ad2,
                check_year = check_year
                ):
                discarded += 1
                continue

            label = helper.draw_label(len(draws_dict))
            candidate_df[config.DEFAULT_COLNAME_DRAW] = label

            draws_dict[label] = order_weight_columns(candidate_df)

        n_kept = len(draws_dict) - 1

        metadata = {
            "model": "NegBin",
            "n_draws": n_draws,
            "n_candidates": n_candidates,
            "n_kept": n_kept,
            "n_discarded": discarded,
            "check_ad2": check_ad2,
            "check_year": check_year,
            "seed": seed if not isinstance(seed, np.random.Generator) else "Generator"
            }

        negbin_draws = Draws(
            draws_dict,
            mean_df[[
                config.DEFAULT_COLNAME_AREA,
                config.DEFAULT_COLNAME_YEAR,
                config.DEFAULT_COLNAME_AD2,
                config.DEFAULT_COLNAME_POPULATION
                ]],
            "long",
            metadata
            )

        helper.add_timestamp(
            negbin_draws,
            function="models.NegBinModel.draws",
            process=f"Performed {n_kept} valid draws from {n_candidates} candidates ({discarded} discarded)"
            )

        if verbose:
            print("OK")

        if n_kept < n_draws:
            print(f"WARNING: Only {n_kept} of {n_draws} requested draws are valid after {n_candidates} candidates.")

        return negbin_draws

def indicator_colname(region: str):

    """
    Formula-safe name of the indicator column of an origin region.
    """

    return f"{config.DEFAULT_COLNAME_AD2}_{re.sub(r'[^0-9a-zA-Z_]', '_', str(region))}"

def check_estimates(
    results,
    model_description: str
    ):

    """
    Reject fitted results with non-finite coefficients or covariances.

    Some optimizers report convergence although the estimates diverged
    (e.g. a dispersion parameter running to infinity).

    Parameters
    ----------
    results : statsmodels results
        Fitted model results.
    model_description : str
        Model name used in the error message.

    Raises
    ------
    ModelFitError
        If any coefficient or covariance entry is NaN or infinite.
    """

    if not np.isfinite(np.asarray(results.params, dtype=float)).all():
        raise ModelFitError(f"Error while fitting {model_description}: Non-finite coefficient estimates")

    if not np.isfinite(np.asarray(results.cov_params(), dtype=float)).all():
        raise ModelFitError(f"Error while fitting {model_description}: Non-finite covariance matrix")

def build_design_matrix(
    design_info,
    data: pd.DataFrame
    ):

    """
    Rebuild a covariate matrix from a patsy design for new data.

    Parameters
    ----------
    design_info : patsy.DesignInfo
        Design of a fitted model (including categorical levels).
    data : pandas.DataFrame
        Rows to build the matrix for.

    Returns
    -------
    pandas.DataFrame
        Covariate matrix aligned with `data`.
    """

    return patsy.build_design_matrices(
        [design_info],
        data,
        return_type="dataframe",
        NA_action="raise"
        )[0]

def split_by_distance(
    long_df: pd.DataFrame,
    cutoff: float = config.NB_DISTANCE_CUTOFF,
    distance_col: str = config.DEFAULT_COLNAME_DISTANCE
    ):

    """
    Split a long destination table into near (< cutoff) and far (>= cutoff) rows.

    Returns
    -------
    dict
        DataFrames for 'near' and 'far'.
    """

    return {
        "near": long_df[long_df[distance_col] < cutoff],
        "far": long_df[long_df[distance_col] >= cutoff]
        }

def sampling_offset(
    df: pd.DataFrame,
    offset_constant: float = config.NB_OFFSET_CONSTANT
    ):

    """
    Offset log((n + c)/pop) correcting for the sampled fraction of the population.
    """

    return np.log(
        (df[config.DEFAULT_COLNAME_N].to_numpy(dtype=float) + offset_constant) /
        df[config.DEFAULT_COLNAME_POPULATION].to_numpy(dtype=float)
        )

def predict_with_coefficients(
    design_matrix,
    link,
    coefficients,
    offset = None
    ):

    """
    Compute predictions on the response scale for a given coefficient vector.

    The linear predictor X b (+ offset) is passed through the inverse of the
    link function. No model object is involved, so sampled coefficient
    vectors never alter a fitted model.

    Parameters
    ----------
    design_matrix : array-like
        Covariate matrix (n x k).
    link : str or statsmodels link
        'logit', 'log' or a statsmodels link instance.
    coefficients : array-like
        Coefficient vector (k).
    offset : array-like, optional
        Offset added to the linear predictor (n).

    Returns
    -------
    numpy.ndarray
        Predictions on the response scale.

    Raises
    ------
    ValueError
        If the link is unknown or dimensions do not match.

    Example
    --------
    >>> probs = predict_with_coefficients(X, "logit", [-1.2, 0.0004])
    """

    if isinstance(link, str):
        if link not in LINKS:
            raise ValueError(f"Error while predicting: Link must be one of {', '.join(LINKS.keys())}")
        link = LINKS[link]()

    design_matrix = np.asarray(design_matrix, dtype=float)
    coefficients = np.asarray(coefficients, dtype=float)

    if design_matrix.shape[1] != coefficients.shape[0]:
        raise ValueError(f"Error while predicting: Design matrix has {design_matrix.shape[1]} columns but {coefficients.shape[0]} coefficients were given")

    linear_predictor = design_matrix @ coefficients

    if offset is not None:
        linear_predictor = linear_predictor + np.asarray(offset, dtype=float)

    return link.inverse(linear_predictor)

def multinomial_probabilities(
    design_matrix,
    coefficients,
    reference: int = 0
    ):

    """
    Compute multinomial logit choice probabilities for a coefficient matrix.

    For every non-reference category the score is exp(X b_j). The
    reference category has the fixed score exp(0) = 1, which is inserted at
    position `reference`; the scores are then normalized per row. With
    `reference=0` this is the inverse link statsmodels' MNLogit uses, where
    the lowest category code is the reference and the coefficient columns
    follow the remaining categories in code order.

    Parameters
    ----------
    design_matrix : array-like
        Covariate matrix (n x k).
    coefficients : array-like
        Coefficient matrix (k x (J-1)), one column per non-reference category.
    reference : int, optional
        Position of the reference category among the J output columns (default: 0).

    Returns
    -------
    numpy.ndarray
        Probabilities (n x J), rows sum to 1.

    Example
    --------
    >>> probs = multinomial_probabilities(X, B, reference=0)
    >>> probs.sum(axis=1)
    """

    design_matrix = np.asarray(design_matrix, dtype=float)
    coefficients = np.asarray(coefficients, dtype=float)

    if coefficients.ndim != 2 or design_matrix.shape[1] != coefficients.shape[0]:
        raise ValueError("Error while calculating multinomial probabilities: Coefficient matrix must have one row per design matrix column")

    n_categories = coefficients.shape[1] + 1

    if reference < 0 or reference >= n_categories:
        raise ValueError(f"Error while calculating multinomial probabilities: Reference must be between 0 and {n_categories-1}")

    scores = np.exp(design_matrix @ coefficients)

    scores = np.insert(
        scores,
        reference,
        np.ones(len(design_matrix)),
        axis=1
        )

    return scores / scores.sum(axis=1, keepdims=True)

def sample_coefficients(
    mean,
    cov,
    n_draws: int = config.N_DRAWS,
    seed = None
    ):

    """
    Sample coefficient vectors from the asymptotic multivariate normal
    distribution of an estimator.

    Parameters
    ----------
    mean : array-like
        Fitted coefficients (k).
    cov : array-like
        Covariance matrix of the coefficients (k x k). Singular (positive
        semi-definite) matrices are allowed.
    n_draws : int, optional
        Number of samples.
    seed : int or numpy.random.Generator, optional
        Seed or generator.

    Returns
    -------
    numpy.ndarray
        Sampled coefficient vectors (n_draws x k).
    """

    if n_draws < 1:
        raise ValueError("Error while sampling coefficients: 'n_draws' must be at least 1")

    mean = np.asarray(mean, dtype=float)
    cov = np.asarray(cov, dtype=float)

    if cov.shape != (len(mean), len(mean)):
        raise ValueError(f"Error while sampling coefficients: Covariance matrix must be {len(mean)} x {len(mean)}")

    rng = np.random.default_rng(seed)

    samples = multivariate_normal(
        mean=mean,
        cov=cov,
        allow_singular=True
        ).rvs(
            size=n_draws,
            random_state=rng
            )

    return np.asarray(samples).reshape(n_draws, len(mean))

def normalize_weights(
    df: pd.DataFrame,
    value_col: str,
    ref_cols: list,
    weights_col: str = config.DEFAULT_COLNAME_WEIGHT,
    drop_total_col: bool = True
    ):

    """
    Normalize values to shares within groups of reference columns.

    Used to turn expected trip counts into destination choice weights per
    origin row.

    Parameters
    ----------
    df : pandas.DataFrame
        Input dataframe.
    value_col : str
        Column holding the values to normalize.
    ref_cols : list of str
        Columns defining the groups (e.g. areaId and year).
    weights_col : str, optional
        Column name to write the shares to (default 'weight').
    drop_total_col : bool, optional
        If True, drop the temporary total column.

    Returns
    -------
    pandas.DataFrame
        The input dataframe extended with the shares. Groups with a total of
        zero get NaN shares.

    Raises
    ------
    KeyError
        If a column is not present in `df`.

    Example
    --------
    >>> df = normalize_weights(df, value_col="gravity_model_trip_counts", ref_cols=["areaId", "year"])
    """

    for col in [value_col] + ref_cols:
        if col not in df.columns:
            raise KeyError(f"Error while normalizing weights: Column '{col}' not in dataframe.")

    df = df.copy()

    total_col = f"{value_col}{config.DEFAULT_TOTAL_SUFFIX}"

    df[total_col] = df.groupby(ref_cols)[value_col].transform("sum")

    df[weights_col] = df[value_col]/df[total_col].where(df[total_col] != 0)

    if drop_total_col:
        df = df.drop(columns=total_col)

    return df

def order_weight_columns(weights_df: pd.DataFrame):

    """
    Order the columns of a negative binomial weight table for output.
    """

    return weights_df[[
        config.DEFAULT_COLNAME_AREA,
        config.DEFAULT_COLNAME_YEAR,
        config.DEFAULT_COLNAME_AD2,
        config.DEFAULT_COLNAME_POPULATION,
        config.DEFAULT_COLNAME_DRAW
        ] + config.DESTINATIONS_LIST].reset_index(drop=True)

def valid_weights(
    weights_df: pd.DataFrame,
    check_ad2: str = config.NB_DEGENERATE_AD2,
    check_year = config.NB_DEGENERATE_YEAR
    ):

    """
    Check a destination weight table of a negative binomial draw.

    A table is invalid if any weight is NaN or negative, or if the off-island
    weight of the low-travel region `check_ad2` in `check_year` is not
    positive (a collapsed fit for that region). If the region/year
    combination is not in the data, only the first condition applies.

    Returns
    -------
    bool
        True if the draw may be kept.
    """

    weights = weights_df[config.DESTINATIONS_LIST].to_numpy(dtype=float)

    if np.isnan(weights).any() or (weights < 0).any():
        return False

    check_rows = weights_df[
        (weights_df[config.DEFAULT_COLNAME_AD2] == check_ad2) &
        (weights_df[config.DEFAULT_COLNAME_YEAR] == check_year)
        ]

    if len(check_rows) > 0 and not (check_rows[config.OFF_ISLAND] > 0).all():
        return False

    return True

def region_to_area_matrix(
    travel_survey: TravelSurvey,
    weighting: str = "population",
    year = None
    ):

    """
    Build the transformation from destination regions to destination areas.

    Each destination region distributes its probability mass over the
    areas of its member regions, either proportionally to area population
    or equally. The off-island destination maps to the pseudo-area
    'off_island'.

    Parameters
    ----------
    travel_survey : TravelSurvey
        Survey providing areas, regions and populations.
    weighting : {"population", "equal"}, optional
        Distribution rule within a region.
    year : int, optional
        Survey year of the area populations. If None, the mean population
        of each area over all survey years is used.

    Returns
    -------
    pandas.DataFrame
        One row per destination region (`config.DESTINATIONS_LIST` order),
        one column per area plus 'off_island'; rows sum to 1.

    Raises
    ------
    ValueError
        If `weighting` is unknown, the year is not in the data, or a
        destination region has no member areas.

    Example
    --------
    >>> transformation = region_to_area_matrix(travel_survey, weighting="population", year=2018)
    """

    if weighting not in config.PERMITTED_AREA_WEIGHTINGS:
        raise ValueError(f"Error while building region to area matrix: Parameter 'weighting' must be one of {', '.join(config.PERMITTED_AREA_WEIGHTINGS.keys())}")

    travel_data_df = travel_survey.get_travel_data_df()

    if year is not None:
        travel_data_df = travel_data_df[travel_data_df[config.DEFAULT_COLNAME_YEAR] == year]
        if len(travel_data_df) == 0:
            raise ValueError(f"Error while building region to area matrix: Year {year} not in data")

    areas_df = travel_data_df.groupby(
        [config.DEFAULT_COLNAME_AREA, config.DEFAULT_COLNAME_AD2],
        as_index=False
        )[config.DEFAULT_COLNAME_POPULATION].mean()

    area_ids = areas_df[config.DEFAULT_COLNAME_AREA].tolist()

    transformation = pd.DataFrame(
        0.0,
        index=config.DESTINATIONS_LIST,
        columns=area_ids + [config.OFF_ISLAND_AREA]
        )

    transformation.loc[config.OFF_ISLAND, config.OFF_ISLAND_AREA] = 1.0

    for code, destination in config.DESTINATIONS.items():

        if code == config.OFF_ISLAND:
            continue

        members_df = areas_df[areas_df[config.DEFAULT_COLNAME_AD2].isin(destination["ad2"])]

        if len(members_df) == 0:
            raise ValueError(f"Error while building region to area matrix: Destination {code} has no member areas")

        if weighting == "population":
            shares = members_df[config.DEFAULT_COLNAME_POPULATION]/members_df[config.DEFAULT_COLNAME_POPULATION].sum()
        else:
            shares = pd.Series(1/len(members_df), index=members_df.index)

        transformation.loc[code, members_df[config.DEFAULT_COLNAME_AREA].tolist()] = shares.to_numpy()

    return transformation

def area_to_area_matrix(
    draws_df: pd.DataFrame,
    transformation: pd.DataFrame,
    draw: str = config.DRAW_MEAN,
    year = None
    ):

    """
    Turn origin-to-region destination probabilities into origin-to-area probabilities.

    The probabilities of one draw (origin areas x destination regions) are
    multiplied with the region-to-area transformation. A row for off-island
    travellers, who stay off-island, is appended.

    Parameters
    ----------
    draws_df : pandas.DataFrame
        Destination draws table (multinomial or negative binomial).
    transformation : pandas.DataFrame
        Output of `region_to_area_matrix()`.
    draw : str, optional
        Draw label (default 'draw.mean').
    year : int, optional
        Survey year; required if the draw holds several rows per area.

    Returns
    -------
    pandas.DataFrame
        Origin areas (plus 'off_island') x destination areas (plus
        'off_island'); rows sum to 1.

    Example
    --------
    >>> area_matrix = area_to_area_matrix(multinomial_draws.get_draws_df(), transformation, year=2018)
    """

    draw_df = draws_df[draws_df[config.DEFAULT_COLNAME_DRAW] == draw]

    if year is not None:
        draw_df = draw_df[draw_df[config.DEFAULT_COLNAME_YEAR] == year]

    if len(draw_df) == 0:
        raise ValueError(f"Error while building area to area matrix: No rows for draw {draw} and year {year}")

    if draw_df[config.DEFAULT_COLNAME_AREA].duplicated().any():
        raise ValueError("Error while building area to area matrix: Several rows per area, state parameter 'year'")

    probabilities = draw_df.set_index(config.DEFAULT_COLNAME_AREA)[config.DESTINATIONS_LIST]

    area_matrix = probabilities.dot(transformation.loc[config.DESTINATIONS_LIST])

    off_island_row = pd.DataFrame(
        0.0,
        index=[config.OFF_ISLAND_AREA],
        columns=area_matrix.columns
        )
    off_island_row.loc[config.OFF_ISLAND_AREA, config.OFF_ISLAND_AREA] = 1.0

    return pd.concat([area_matrix, off_island_row])
