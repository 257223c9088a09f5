#-----------------------------------------------------------------------
# Name:        tripmodels package
# Purpose:     Trip frequency and destination choice models for travel survey data
# Author:      Thomas Wieland
#              ORCID: 0000-0001-5168-9846
#              mail: geowieland@googlemail.com
# Version:     1.0.0
# Last update: 2026-10-18 16:40
# Copyright (c) 2024-2026 Thomas Wieland
#-----------------------------------------------------------------------
