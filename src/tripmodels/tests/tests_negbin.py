#-----------------------------------------------------------------------
# Name:        tests_negbin (tripmodels package)
# Purpose:     Tests for the two-regime negative binomial gravity model
# Author:      Thomas Wieland
#              ORCID: 0000-0001-5168-9846
#              mail: geowieland@googlemail.com
# Version:     1.0.0
# Last update: 2026-10-18 18:10
# Copyright (c) 2024-2026 Thomas Wieland
#-----------------------------------------------------------------------

import numpy as np
import pandas as pd
import pytest
import tripmodels.config as config
import tripmodels.models as models
from tripmodels.models import NegBinModel, valid_weights, split_by_distance


def test_regimes(negbin_model):

    assert isinstance(negbin_model, NegBinModel)

    long_df = negbin_model.get_long_df()
    regimes = split_by_distance(long_df)

    assert len(regimes["near"]) + len(regimes["far"]) == len(long_df)
    assert (regimes["near"][config.DEFAULT_COLNAME_DISTANCE] < config.NB_DISTANCE_CUTOFF).all()
    assert (regimes["far"][config.DEFAULT_COLNAME_DISTANCE] >= config.NB_DISTANCE_CUTOFF).all()

    no_obs = negbin_model.get_metadata()["fit"]["no_obs"]
    assert no_obs["near"] == len(regimes["near"])
    assert no_obs["far"] == len(regimes["far"])

def test_alpha_excluded(negbin_model):

    for regime in config.NB_REGIMES:

        coefficients, cov = negbin_model.get_coefficients(regime)

        assert "alpha" not in coefficients.index
        assert "alpha" in negbin_model.get_nb_results()[regime].params.index
        assert cov.shape == (len(coefficients), len(coefficients))

    assert "distance" in negbin_model.get_coefficients("near")[0].index
    assert "np.log(distance)" in negbin_model.get_coefficients("far")[0].index

    with pytest.raises(KeyError):
        negbin_model.get_coefficients("medium")

def test_scaled_data(negbin_model):

    scaled_regimes = negbin_model.scaled_data()

    for regime in config.NB_REGIMES:
        regime_df = scaled_regimes[regime]
        assert (regime_df[config.DEFAULT_COLNAME_N] == regime_df[config.DEFAULT_COLNAME_POPULATION]).all()

    assert (negbin_model.get_long_df()[config.DEFAULT_COLNAME_N] != negbin_model.get_long_df()[config.DEFAULT_COLNAME_POPULATION]).any()
    # Model data unchanged

def test_mean_weights(negbin_model, travel_survey):

    weights_df = negbin_model.predict()

    assert list(weights_df.columns) == ["areaId", "year", "ad2", "pop"] + config.DESTINATIONS_LIST
    assert len(weights_df) == len(travel_survey.get_travel_data_df())

    weights = weights_df[config.DESTINATIONS_LIST].to_numpy()

    assert not np.isnan(weights).any()
    assert (weights >= 0).all()
    assert np.abs(weights.sum(axis=1) - 1).max() <= config.ROWSUM_TOLERANCE

def test_refit_identical(travel_survey, negbin_model):

    negbin_model_2 = travel_survey.negbin_fit()

    pd.testing.assert_frame_equal(
        negbin_model.predict(),
        negbin_model_2.predict()
        )

def test_draws(negbin_model):

    negbin_draws = negbin_model.draws(n_draws=20, n_candidates=50, seed=5)

    draws_df = negbin_draws.get_draws_df()

    assert list(draws_df.columns) == ["areaId", "year", "ad2", "pop", "draw"] + config.DESTINATIONS_LIST

    labels = negbin_draws.get_labels()
    n_kept = negbin_draws.get_metadata()["n_kept"]

    assert n_kept <= 20
    assert labels == ["draw.mean"] + [f"draw.{i}" for i in range(1, n_kept+1)]
    # Valid draws are labelled consecutively

    weights = draws_df[config.DESTINATIONS_LIST].to_numpy()

    assert not np.isnan(weights).any()
    assert (weights >= 0).all()
    assert np.abs(negbin_draws.rowsums() - 1).max() <= config.ROWSUM_TOLERANCE

    check_rows = draws_df[(draws_df["ad2"] == config.NB_DEGENERATE_AD2) & (draws_df["year"] == config.NB_DEGENERATE_YEAR)]
    assert len(check_rows) > 0
    assert (check_rows[config.OFF_ISLAND] > 0).all()

def test_draws_seed(negbin_model):

    draws_df_1 = negbin_model.draws(n_draws=5, n_candidates=10, seed=9).get_draws_df()
    draws_df_2 = negbin_model.draws(n_draws=5, n_candidates=10, seed=9).get_draws_df()

    pd.testing.assert_frame_equal(draws_df_1, draws_df_2)

def test_draws_candidates_exhausted(negbin_model, monkeypatch, capsys):

    monkeypatch.setattr(models, "valid_weights", lambda *args, **kwargs: False)

    negbin_draws = negbin_model.draws(n_draws=5, n_candidates=8, seed=1)

    assert negbin_draws.get_labels() == ["draw.mean"]
    assert negbin_draws.get_metadata()["n_discarded"] == 8
    assert "WARNING" in capsys.readouterr().out

def test_draws_invalid_candidates(negbin_model):

    with pytest.raises(ValueError):
        negbin_model.draws(n_draws=10, n_candidates=5)

def test_valid_weights():

    weights_df = pd.DataFrame({
        "areaId": ["URE01", "URE01", "MAL01"],
        "year": [2017, 2018, 2018],
        "ad2": ["Ureka", "Ureka", "Malabo"],
        "pop": [1000, 1020, 3000],
        **{destination: [1/7, 1/7, 1/7] for destination in config.DESTINATIONS_LIST}
        })

    assert valid_weights(weights_df)

    degenerate_df = weights_df.copy()
    degenerate_df.loc[1, config.OFF_ISLAND] = 0.0
    assert not valid_weights(degenerate_df)

    other_year_df = weights_df.copy()
    other_year_df.loc[0, config.OFF_ISLAND] = 0.0
    assert valid_weights(other_year_df)
    # Only the check year is inspected

    nan_df = weights_df.copy()
    nan_df.loc[2, "ti_mal"] = np.nan
    assert not valid_weights(nan_df)

    negative_df = weights_df.copy()
    negative_df.loc[2, "ti_ban"] = -0.01
    assert not valid_weights(negative_df)

    no_check_rows_df = weights_df[weights_df["ad2"] != "Ureka"].copy()
    no_check_rows_df[config.OFF_ISLAND] = 0.0
    assert valid_weights(no_check_rows_df)

def test_summary(negbin_model):

    fit_metadata = negbin_model.summary()

    assert fit_metadata["cutoff"] == config.NB_DISTANCE_CUTOFF
    assert fit_metadata["offset_constant"] == config.NB_OFFSET_CONSTANT

def test_draws_default_counts(negbin_model):

    negbin_draws = negbin_model.draws(seed=2018)

    draws_df = negbin_draws.get_draws_df()

    assert negbin_draws.get_metadata()["n_candidates"] == config.NB_CANDIDATE_DRAWS
    assert negbin_draws.get_metadata()["n_kept"] == config.N_DRAWS
    assert negbin_draws.get_labels() == ["draw.mean"] + [f"draw.{i}" for i in range(1, config.N_DRAWS+1)]
    assert len(draws_df) == len(negbin_model.predict())*(config.N_DRAWS+1)

    weights = draws_df[config.DESTINATIONS_LIST].to_numpy()

    assert np.isfinite(weights).all()
    assert np.abs(weights.sum(axis=1) - 1).max() <= config.ROWSUM_TOLERANCE

def test_fit_estimates_finite(negbin_model):

    for regime in config.NB_REGIMES:

        results = negbin_model.get_nb_results()[regime]

        assert results.mle_retvals["converged"]
        assert np.isfinite(np.asarray(results.params)).all()
        assert np.isfinite(np.asarray(results.cov_params())).all()
        assert np.asarray(results.params)[-1] > 0

class DivergedResults:

    def __init__(self, params, cov):
        self.params = params
        self.cov = cov
        self.mle_retvals = {"converged": True}

    def cov_params(self):
        return self.cov

class DivergingNegativeBinomial:

    def __init__(self, endog, exog, offset=None):
        self.exog_names = list(exog.columns) + ["alpha"]

    def fit(self, *args, **kwargs):
        params = pd.Series(np.nan, index=self.exog_names)
        cov = pd.DataFrame(np.eye(len(self.exog_names)), index=self.exog_names, columns=self.exog_names)
        return DivergedResults(params, cov)

def test_nonfinite_estimates_raise(travel_survey, monkeypatch):

    monkeypatch.setattr(models, "NegativeBinomial", DivergingNegativeBinomial)

    with pytest.raises(models.ModelFitError, match="Non-finite"):
        travel_survey.negbin_fit()

def test_check_estimates():

    params = pd.Series([0.2, -1.5, 0.4])
    cov = pd.DataFrame(np.eye(3)*0.01)

    models.check_estimates(DivergedResults(params, cov), "Test model")

    with pytest.raises(models.ModelFitError, match="coefficient"):
        models.check_estimates(DivergedResults(pd.Series([0.2, np.inf, 0.4]), cov), "Test model")

    cov_nan = cov.copy()
    cov_nan.iloc[1, 1] = np.nan

    with pytest.raises(models.ModelFitError, match="covariance"):
        models.check_estimates(DivergedResults(params, cov_nan), "Test model")
