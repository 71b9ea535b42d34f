"""
Scoring: location score, four-axis scores and the risk register.

Modules
-------
location   : calculate_location_score() - synergy, demographics, competitor pressure.
dimensions : calculate_scores() - location/market/operational/financial + overall.
risk       : categorize_risks() - risk register, risk score and level.
"""
