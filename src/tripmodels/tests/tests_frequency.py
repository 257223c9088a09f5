#-----------------------------------------------------------------------
# Name:        tests_frequency (tripmodels package)
# Purpose:     Tests for the binomial trip frequency model and its draws
# Author:      Thomas Wieland
#              ORCID: 0000-0001-5168-9846
#              mail: geowieland@googlemail.com
# Version:     1.0.0
# Last update: 2026-10-18 17:34
# Copyright (c) 2024-2026 Thomas Wieland
#-----------------------------------------------------------------------

import numpy as np
import pandas as pd
import pytest
import tripmodels.config as config
from tripmodels.data_management import load_travel_data
from tripmodels.models import FrequencyModel, Draws, ModelFitError


def test_leave_probabilities(frequency_model):

    assert isinstance(frequency_model, FrequencyModel)

    frequency_data_df = frequency_model.get_frequency_data_df()

    leave_prob = frequency_data_df[config.DEFAULT_COLNAME_LEAVE_PROB].to_numpy()
    leave_freq = frequency_data_df[config.DEFAULT_COLNAME_LEAVE_FREQ].to_numpy()

    assert ((leave_prob >= 0) & (leave_prob <= 1)).all()
    assert np.array_equal(leave_freq, leave_prob/config.SURVEY_PERIOD_DAYS)

def test_refit_identical(travel_survey, frequency_model):

    frequency_model_2 = travel_survey.frequency_fit()

    assert np.array_equal(
        frequency_model.get_frequency_data_df()[config.DEFAULT_COLNAME_LEAVE_PROB].to_numpy(),
        frequency_model_2.get_frequency_data_df()[config.DEFAULT_COLNAME_LEAVE_PROB].to_numpy()
        )

def test_predict_matches_fitted(frequency_model):

    leave_prob = frequency_model.get_frequency_data_df()[config.DEFAULT_COLNAME_LEAVE_PROB].to_numpy()

    assert np.allclose(frequency_model.predict(), leave_prob, rtol=0, atol=1e-12)

def test_predict_single_area(frequency_model, travel_survey):

    travel_data_df = travel_survey.get_travel_data_df()

    area_df = pd.DataFrame({
        "pop": [travel_data_df["pop"].mean()],
        "ad2": ["Malabo"],
        "dist_mal": [travel_data_df["dist_mal"].mean()]
        })

    prob_1 = frequency_model.predict(area_df)
    prob_2 = frequency_model.predict(area_df)

    assert prob_1.shape == (1,)
    assert 0 < prob_1[0] < 1
    assert np.array_equal(prob_1, prob_2)

def test_draws_layout(frequency_model):

    frequency_draws = frequency_model.draws(seed=42)

    assert isinstance(frequency_draws, Draws)

    draws_df = frequency_draws.get_draws_df()

    expected_cols = ["areaId", "year", "draw.mean"] + [f"draw.{i}" for i in range(1, config.N_DRAWS+1)]
    assert list(draws_df.columns) == expected_cols
    assert len(draws_df) == len(frequency_model.get_frequency_data_df())

    draws_values = draws_df[expected_cols[2:]].to_numpy()
    assert ((draws_values >= 0) & (draws_values <= 1)).all()

    assert np.array_equal(
        draws_df["draw.mean"].to_numpy(),
        frequency_model.get_frequency_data_df()[config.DEFAULT_COLNAME_LEAVE_PROB].to_numpy()
        )

def test_draws_seed(frequency_model):

    draws_df_1 = frequency_model.draws(n_draws=10, seed=7).get_draws_df()
    draws_df_2 = frequency_model.draws(n_draws=10, seed=7).get_draws_df()
    draws_df_3 = frequency_model.draws(n_draws=10, seed=8).get_draws_df()

    pd.testing.assert_frame_equal(draws_df_1, draws_df_2)
    assert not np.array_equal(draws_df_1["draw.1"].to_numpy(), draws_df_3["draw.1"].to_numpy())

def test_draws_leave_model_unchanged(frequency_model):

    params_before = frequency_model.get_coefficients()[0].copy()
    leave_prob_before = frequency_model.get_frequency_data_df()[config.DEFAULT_COLNAME_LEAVE_PROB].copy()

    frequency_model.draws(n_draws=5, seed=1)

    pd.testing.assert_series_equal(params_before, frequency_model.get_coefficients()[0])
    pd.testing.assert_series_equal(leave_prob_before, frequency_model.get_frequency_data_df()[config.DEFAULT_COLNAME_LEAVE_PROB])

def test_draws_get_draw(frequency_model):

    frequency_draws = frequency_model.draws(n_draws=3, seed=2)

    assert frequency_draws.get_labels() == ["draw.mean", "draw.1", "draw.2", "draw.3"]

    draw_df = frequency_draws.get_draw("draw.2")
    assert list(draw_df.columns) == ["areaId", "year", "draw.2"]

    with pytest.raises(KeyError):
        frequency_draws.get_draw("draw.4")

    with pytest.raises(ValueError):
        frequency_draws.rowsums()

def test_rows_without_respondents(survey_tables):

    survey_df = survey_tables[0].copy()
    survey_df.loc[0, "n"] = 0
    survey_df.loc[0, "trip.counts"] = 0

    travel_survey = load_travel_data(
        survey_df,
        survey_tables[1]
        )

    frequency_model = travel_survey.frequency_fit()

    assert frequency_model.get_metadata()["fit"]["no_obs"] == len(survey_df) - 1

    leave_prob = frequency_model.get_frequency_data_df()[config.DEFAULT_COLNAME_LEAVE_PROB]
    assert leave_prob.notna().all()

def test_modelfit_and_summary(frequency_model):

    frequency_modelfit = frequency_model.modelfit()

    assert len(frequency_modelfit[0]) == len(frequency_model.get_frequency_data_df())
    for gof_value in config.GOODNESS_OF_FIT.values():
        assert gof_value in frequency_modelfit[1]

    summary = frequency_model.summary()
    assert summary[0]["no_obs"] == len(frequency_model.get_frequency_data_df())

def test_show_log(frequency_model):

    timestamps = frequency_model.show_log()

    assert len(timestamps) >= 1
    assert timestamps[0]["function"] == "models.TravelSurvey.frequency_fit"

def test_region_without_respondents(survey_tables):

    survey_df = survey_tables[0].copy()
    ureka_rows = survey_df["ad2"] == "Ureka"
    survey_df.loc[ureka_rows, "n"] = 0
    survey_df.loc[ureka_rows, "trip.counts"] = 0

    travel_survey = load_travel_data(
        survey_df,
        survey_tables[1]
        )

    with pytest.raises(ModelFitError, match="n > 0"):
        travel_survey.frequency_fit()
