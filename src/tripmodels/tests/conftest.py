#-----------------------------------------------------------------------
# Name:        conftest (tripmodels package)
# Purpose:     Synthetic travel survey data for the tripmodels tests
# Author:      Thomas Wieland
#              ORCID: 0000-0001-5168-9846
#              mail: geowieland@googlemail.com
# Version:     1.0.0
# Last update: 2026-10-18 17:05
# Copyright (c) 2024-2026 Thomas Wieland
#-----------------------------------------------------------------------

import numpy as np
import pandas as pd
import pytest
from tripmodels.data_management import load_travel_data


REGION_CENTRES = {
    "Baney": (12, 0),
    "Luba": (-8, -16),
    "Malabo": (0, 0),
    "Moka": (8, -18),
    "Peri": (6, -4),
    "Riaba": (20, -12),
    "Ureka": (4, -30)
    }
# Region centres in km

DESTINATION_CENTRES = {
    "eg": (-30, 60),
    "ban": REGION_CENTRES["Baney"],
    "lub": REGION_CENTRES["Luba"],
    "mal": REGION_CENTRES["Malabo"],
    "mok": REGION_CENTRES["Moka"],
    "ria": REGION_CENTRES["Riaba"],
    "ure": REGION_CENTRES["Ureka"]
    }
# Off-island distances are measured to a point off the island

DESTINATION_ATTRACTION = {
    "eg": 4.0,
    "ban": 0.5,
    "lub": 0.3,
    "mal": 1.5,
    "mok": 0.2,
    "ria": 0.2,
    "ure": 0.1
    }

DISTANCE_DECAY = 0.00008
# per metre

REGION_EFFECTS = {
    "Baney": 0.1,
    "Luba": -0.2,
    "Malabo": 0.2,
    "Moka": -0.1,
    "Peri": 0.0,
    "Riaba": -0.15,
    "Ureka": -0.3
    }

YEARS = [2015, 2016, 2017, 2018]
AREAS_PER_REGION = 4


def make_survey_tables(seed=20180101):

    rng = np.random.default_rng(seed)

    area_rows = []
    distance_rows = []

    for region, (centre_x, centre_y) in REGION_CENTRES.items():

        for i in range(AREAS_PER_REGION):

            area_id = f"{region[:3].upper()}{i+1:02d}"

            x = centre_x + rng.uniform(-3, 3)
            y = centre_y + rng.uniform(-3, 3)

            distance_row = {"areaId": area_id}
            for code, (dest_x, dest_y) in DESTINATION_CENTRES.items():
                distance_row[f"dist.{code}"] = round(float(np.hypot(x-dest_x, y-dest_y))*1000, 1)
            distance_rows.append(distance_row)

            area_rows.append({
                "areaId": area_id,
                "ad2": region,
                "pop_base": rng.uniform(500, 5000)
                })

    distance_df = pd.DataFrame(distance_rows)
    distances = distance_df.set_index("areaId")

    survey_rows = []

    for area in area_rows:

        for year in YEARS:

            pop = int(round(area["pop_base"]*(1.02**(year-YEARS[0]))))
            n = int(rng.integers(150, 250))

            dist_mal = distances.loc[area["areaId"], "dist.mal"]

            eta = -0.9 + 0.00005*pop - 0.00001*dist_mal + REGION_EFFECTS[area["ad2"]]
            leave_prob = 1/(1+np.exp(-eta))

            trip_counts = int(rng.binomial(n, leave_prob))

            utilities = np.array([
                DESTINATION_ATTRACTION[code] - DISTANCE_DECAY*distances.loc[area["areaId"], f"dist.{code}"]
                for code in DESTINATION_CENTRES.keys()
                ])
            shares = np.exp(utilities)/np.exp(utilities).sum()

            heterogeneity = rng.gamma(shape=2.0, scale=0.5, size=len(shares))
            destination_counts = rng.poisson(trip_counts*shares*heterogeneity)

            survey_row = {
                "areaId": area["areaId"],
                "ad2": area["ad2"],
                "year": year,
                "n": n,
                "trip.counts": trip_counts,
                "pop": pop
                }

            for code, count in zip(DESTINATION_CENTRES.keys(), destination_counts):
                column = "t_eg" if code == "eg" else f"ti_{code}"
                survey_row[column] = int(count)

            survey_rows.append(survey_row)

    survey_df = pd.DataFrame(survey_rows)

    return [
        survey_df,
        distance_df
        ]


@pytest.fixture(scope="session")
def survey_tables():
    return make_survey_tables()

@pytest.fixture(scope="session")
def travel_survey(survey_tables):
    return load_travel_data(
        survey_tables[0],
        survey_tables[1]
        )

@pytest.fixture(scope="session")
def frequency_model(travel_survey):
    return travel_survey.frequency_fit()

@pytest.fixture(scope="session")
def multinomial_model(travel_survey):
    return travel_survey.multinomial_fit()

@pytest.fixture(scope="session")
def negbin_model(travel_survey):
    return travel_survey.negbin_fit()
