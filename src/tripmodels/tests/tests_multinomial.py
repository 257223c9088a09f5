#-----------------------------------------------------------------------
# Name:        tests_multinomial (tripmodels package)
# Purpose:     Tests for the multinomial logit destination choice model
# Author:      Thomas Wieland
#              ORCID: 0000-0001-5168-9846
#              mail: geowieland@googlemail.com
# Version:     1.0.0
# Last update: 2026-10-18 17:52
# Copyright (c) 2024-2026 Thomas Wieland
#-----------------------------------------------------------------------

import numpy as np
import pandas as pd
import pytest
import tripmodels.config as config
from tripmodels.data_management import load_travel_data
from tripmodels.models import MultinomialModel, ModelFitError


def test_destination_table(travel_survey):

    long_df = travel_survey.destination_table(include_indicators=True)

    travel_data_df = travel_survey.get_travel_data_df()

    assert len(long_df) == len(travel_data_df)*len(config.DESTINATIONS_LIST)
    assert long_df[config.DEFAULT_COLNAME_DESTINATION].tolist()[:7] == config.DESTINATIONS_LIST
    assert long_df[config.DEFAULT_COLNAME_COUNTS].sum() == travel_data_df[config.DESTINATIONS_LIST].to_numpy().sum()

    first_row = long_df[long_df["origin_row"] == 0].set_index(config.DEFAULT_COLNAME_DESTINATION)
    assert first_row.loc["ti_ure", config.DEFAULT_COLNAME_DISTANCE] == travel_data_df.loc[0, "dist_ure"]
    assert first_row.loc["t_eg", config.DEFAULT_COLNAME_DEST_POP] == 1071785

    indicator_cols = [col for col in long_df.columns if col.startswith("ad2_")]
    assert len(indicator_cols) == 7
    assert (long_df[indicator_cols].sum(axis=1) == 1).all()

def test_mean_probabilities(multinomial_model):

    assert isinstance(multinomial_model, MultinomialModel)

    draws_df = multinomial_model.draws(n_draws=1, seed=1).get_draw(config.DRAW_MEAN)

    probabilities = draws_df[config.DESTINATIONS_LIST].to_numpy()

    assert ((probabilities >= 0) & (probabilities <= 1)).all()
    assert np.abs(probabilities.sum(axis=1) - 1).max() <= config.ROWSUM_TOLERANCE

def test_analytic_matches_library(multinomial_model):

    analytic = multinomial_model.predict()
    library = np.asarray(multinomial_model.get_mnl_results().predict(multinomial_model.design_matrix()))

    assert analytic.shape == (len(multinomial_model.get_origin_df()), len(config.DESTINATIONS_LIST))
    assert np.allclose(analytic, library, rtol=0, atol=1e-12)

def test_refit_identical(travel_survey, multinomial_model):

    multinomial_model_2 = travel_survey.multinomial_fit()

    assert np.array_equal(
        multinomial_model.mean_probabilities,
        multinomial_model_2.mean_probabilities
        )

def test_coefficients(multinomial_model):

    coefficients, cov = multinomial_model.get_coefficients()

    assert list(coefficients.columns) == config.DESTINATIONS_LIST[1:]
    assert coefficients.shape == (15, 6)
    assert cov.shape == (90, 90)
    assert coefficients.index[0] == "Intercept"
    assert "ad2_Baney" not in coefficients.index
    # First region in sorted order is the omitted indicator

    assert multinomial_model.get_metadata()["fit"]["reference_ad2"] == "Baney"
    assert multinomial_model.get_metadata()["fit"]["reference_destination"] == "t_eg"

def test_draws_rowsums(multinomial_model):

    multinomial_draws = multinomial_model.draws(n_draws=20, seed=11)

    draws_df = multinomial_draws.get_draws_df()

    assert list(draws_df.columns) == ["areaId", "ad2", "pop", "year", "draw"] + config.DESTINATIONS_LIST
    assert len(draws_df) == len(multinomial_model.get_origin_df())*21
    assert draws_df["draw"].unique().tolist() == ["draw.mean"] + [f"draw.{i}" for i in range(1, 21)]

    assert np.abs(multinomial_draws.rowsums() - 1).max() <= config.ROWSUM_TOLERANCE
    assert (draws_df[config.DESTINATIONS_LIST].to_numpy() >= 0).all()

def test_draws_seed(multinomial_model):

    draws_df_1 = multinomial_model.draws(n_draws=5, seed=3).get_draws_df()
    draws_df_2 = multinomial_model.draws(n_draws=5, seed=3).get_draws_df()

    pd.testing.assert_frame_equal(draws_df_1, draws_df_2)

def test_unobserved_destinations_smoothed(multinomial_model):

    origin_df = multinomial_model.get_origin_df()

    observed = origin_df[config.DESTINATIONS_LIST].to_numpy()
    probabilities = multinomial_model.predict()

    assert (observed == 0).any()
    assert (probabilities[observed == 0] > 0).all()

def test_destination_never_chosen(survey_tables):

    survey_df = survey_tables[0].copy()
    survey_df["ti_ria"] = 0

    travel_survey = load_travel_data(
        survey_df,
        survey_tables[1]
        )

    with pytest.raises(ModelFitError, match="ti_ria"):
        travel_survey.multinomial_fit()

def test_modelfit_and_summary(multinomial_model):

    multinomial_modelfit = multinomial_model.modelfit()

    assert multinomial_modelfit[1]["RMSE"] >= 0

    summary = multinomial_model.summary()
    assert summary[0]["reference_destination"] == "t_eg"
