#-----------------------------------------------------------------------
# Name:        Example_01_Trip_models_analysis (tripmodels package)
# Purpose:     Example 01: Trip frequency and destination choice models
# Author:      Thomas Wieland
#              ORCID: 0000-0001-5168-9846
#              mail: geowieland@googlemail.com
# Version:     1.0.0
# Last update: 2026-10-18 19:10
# Copyright (c) 2026 Thomas Wieland
#-----------------------------------------------------------------------


# This example shows the full workflow of the travel survey analysis:
# 1) Import of the aggregated travel survey and the travel distances
# 2) Binomial trip frequency model and draws of leaving probabilities
# 3) Multinomial logit destination choice model and draws of destination probabilities
# 4) Negative binomial gravity model and draws of destination weights
# 5) Transformation of destination probabilities into area-to-area probabilities

# To run this example, switch to directory 'examples' and type:
# python Example_01_Trip_models_analysis.py
# The directory 'data' must contain the files aggregated_2015_2018_travel_data.csv
# and travel_dist_by_region.csv


from tripmodels.data_management import load_travel_data, write_predictions
from tripmodels.models import region_to_area_matrix, area_to_area_matrix
import tripmodels.config as config


# 1) Import of the aggregated travel survey and the travel distances

travel_survey = load_travel_data(
    survey_data = "data/aggregated_2015_2018_travel_data.csv",
    distance_data = "data/travel_dist_by_region.csv",
    verbose = True
    )
# Survey rows without distances are dropped, trip counts are clamped to the number surveyed
# Resulting object "travel_survey" is of class TravelSurvey

travel_survey.summary()
# Summary of the survey data incl. destination populations


# 2) Binomial trip frequency model

frequency_model = travel_survey.frequency_fit(verbose = True)
# Probability of leaving home ~ population + admin region + distance to Malabo

frequency_model.summary()
# Coefficients and goodness-of-fit of the leaving probabilities

frequency_draws = frequency_model.draws(
    n_draws = 100,
    seed = 1,
    verbose = True
    )
# 100 draws of coefficient vectors, leaving probabilities recomputed for each draw

write_predictions(
    frequency_draws,
    config.OUTPUT_FREQUENCY,
    verbose = True
    )
# Wide table: areaId, year, draw.mean, draw.1 ... draw.100


# 3) Multinomial logit destination choice model

multinomial_model = travel_survey.multinomial_fit(verbose = True)
# Destination region ~ population + distances to all regions + origin region
# Off-island destination is the reference category

multinomial_model.summary()

multinomial_draws = multinomial_model.draws(
    n_draws = 100,
    seed = 1,
    verbose = True
    )

multinomial_draws.plot(
    area = multinomial_draws.get_draws_df()["areaId"].iloc[0],
    year = 2018,
    save_as = "multinomial_draws.png"
    )
# Spread of the destination probabilities of one area

write_predictions(
    multinomial_draws,
    config.OUTPUT_MULTINOMIAL,
    verbose = True
    )
# Long table: areaId, ad2, pop, year, draw, one probability column per destination


# 4) Negative binomial gravity model

negbin_model = travel_survey.negbin_fit(verbose = True)
# Separate models for near (< 20 km) and far trips

negbin_model.summary()

negbin_draws = negbin_model.draws(
    n_draws = 100,
    n_candidates = 250,
    seed = 1,
    verbose = True
    )
# Degenerate candidate draws are discarded

negbin_draws.summary()

negbin_draws.show_log()

write_predictions(
    negbin_draws,
    config.OUTPUT_NEGBIN,
    verbose = True
    )


# 5) Area-to-area probabilities

transformation = region_to_area_matrix(
    travel_survey,
    weighting = "population",
    year = 2018
    )
# Destination regions are distributed to their areas proportionally to population

area_matrix = area_to_area_matrix(
    multinomial_draws.get_draws_df(),
    transformation,
    draw = "draw.mean",
    year = 2018
    )

area_matrix.to_csv("multinomial_area_to_area_2018.csv")
