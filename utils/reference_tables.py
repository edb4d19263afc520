"""Static lookup tables used by the enrichment passes.

All tables are exact-match dictionaries keyed the way call-log exports spell
the value: two-letter state/province codes, three-digit area codes and
title-case California county names.

Usage:
    from utils.reference_tables import STATE_COORDINATES

    lat, lng = STATE_COORDINATES["CA"]
"""

# ── Area code → carrier ──────────────────────────────────────────────────────
# Coarse carrier attribution by area code; numbers are ported freely so this
# is a best guess, not a lookup of record.

AREA_CODE_CARRIERS: dict[str, str] = {
    "201": "Verizon/AT&T", "202": "Verizon/AT&T", "203": "AT&T",
    "212": "Verizon", "213": "AT&T", "214": "AT&T",
    "310": "AT&T/T-Mobile", "312": "AT&T", "313": "AT&T",
    "404": "AT&T", "408": "AT&T", "415": "AT&T",
    "469": "AT&T", "512": "AT&T", "602": "T-Mobile",
    "619": "AT&T", "626": "AT&T", "650": "AT&T",
    "702": "T-Mobile", "713": "AT&T", "714": "AT&T",
    "718": "Verizon", "720": "T-Mobile", "760": "Verizon",
    "818": "AT&T", "858": "AT&T", "909": "Verizon",
    "916": "AT&T", "917": "Verizon", "949": "AT&T",
    "951": "Verizon", "972": "AT&T",
}

UNKNOWN_CARRIER = "Unknown Carrier"

# ── State/province → (latitude, longitude) ───────────────────────────────────
# Geographic centre of each state, DC and the four largest provinces.

STATE_COORDINATES: dict[str, tuple[float, float]] = {
    "AL": (32.806671, -86.791130), "AK": (61.370716, -152.404419),
    "AZ": (33.729759, -111.431221), "AR": (34.969704, -92.373123),
    "CA": (36.116203, -119.681564), "CO": (39.059811, -105.311104),
    "CT": (41.597782, -72.755371), "DE": (39.318523, -75.507141),
    "FL": (27.766279, -81.686783), "GA": (33.040619, -83.643074),
    "HI": (21.094318, -157.498337), "ID": (44.240459, -114.478828),
    "IL": (40.349457, -88.986137), "IN": (39.849426, -86.258278),
    "IA": (42.011539, -93.210526), "KS": (38.526600, -96.726486),
    "KY": (37.668140, -84.670067), "LA": (31.169546, -91.867805),
    "ME": (44.693947, -69.381927), "MD": (39.063946, -76.802101),
    "MA": (42.230171, -71.530106), "MI": (43.326618, -84.536095),
    "MN": (45.694454, -93.900192), "MS": (32.741646, -89.678696),
    "MO": (38.456085, -92.288368), "MT": (46.921925, -110.454353),
    "NE": (41.125370, -98.268082), "NV": (38.313515, -117.055374),
    "NH": (43.452492, -71.563896), "NJ": (40.298904, -74.521011),
    "NM": (34.840515, -106.248482), "NY": (42.165726, -74.948051),
    "NC": (35.630066, -79.806419), "ND": (47.528912, -99.784012),
    "OH": (40.388783, -82.764915), "OK": (35.565342, -96.928917),
    "OR": (44.572021, -122.070938), "PA": (40.590752, -77.209755),
    "RI": (41.680893, -71.511780), "SC": (33.856892, -80.945007),
    "SD": (44.299782, -99.438828), "TN": (35.747845, -86.692345),
    "TX": (31.054487, -97.563461), "UT": (40.150032, -111.862434),
    "VT": (44.045876, -72.710686), "VA": (37.769337, -78.169968),
    "WA": (47.400902, -121.490494), "WV": (38.491226, -80.954453),
    "WI": (44.268543, -89.616508), "WY": (42.755966, -107.302490),
    "DC": (38.897438, -77.026817),
    "ON": (51.253775, -85.323214), "QC": (52.939916, -73.549136),
    "BC": (53.726669, -127.647621), "AB": (53.933271, -116.576503),
}

# ── State/province → IANA timezone ───────────────────────────────────────────

STATE_TIMEZONES: dict[str, str] = {
    "AL": "America/Chicago", "AK": "America/Anchorage", "AZ": "America/Phoenix",
    "AR": "America/Chicago", "CA": "America/Los_Angeles", "CO": "America/Denver",
    "CT": "America/New_York", "DE": "America/New_York", "FL": "America/New_York",
    "GA": "America/New_York", "HI": "Pacific/Honolulu", "ID": "America/Boise",
    "IL": "America/Chicago", "IN": "America/Indiana/Indianapolis", "IA": "America/Chicago",
    "KS": "America/Chicago", "KY": "America/New_York", "LA": "America/Chicago",
    "ME": "America/New_York", "MD": "America/New_York", "MA": "America/New_York",
    "MI": "America/Detroit", "MN": "America/Chicago", "MS": "America/Chicago",
    "MO": "America/Chicago", "MT": "America/Denver", "NE": "America/Chicago",
    "NV": "America/Los_Angeles", "NH": "America/New_York", "NJ": "America/New_York",
    "NM": "America/Denver", "NY": "America/New_York", "NC": "America/New_York",
    "ND": "America/Chicago", "OH": "America/New_York", "OK": "America/Chicago",
    "OR": "America/Los_Angeles", "PA": "America/New_York", "RI": "America/New_York",
    "SC": "America/New_York", "SD": "America/Chicago", "TN": "America/Chicago",
    "TX": "America/Chicago", "UT": "America/Denver", "VT": "America/New_York",
    "VA": "America/New_York", "WA": "America/Los_Angeles", "WV": "America/New_York",
    "WI": "America/Chicago", "WY": "America/Denver", "DC": "America/New_York",
    "ON": "America/Toronto", "QC": "America/Montreal", "BC": "America/Vancouver",
    "AB": "America/Edmonton", "MB": "America/Winnipeg", "SK": "America/Regina",
    "NS": "America/Halifax", "NB": "America/Moncton", "NL": "America/St_Johns",
}

# ── California county → assessor site ────────────────────────────────────────

CA_COUNTY_ASSESSORS: dict[str, str] = {
    "Alameda": "https://www.acgov.org/assessor/search/",
    "Alpine": "https://www.alpinecountyca.gov/192/Assessor",
    "Amador": "https://www.amadorgov.org/government/assessor",
    "Butte": "https://www.buttecounty.net/assessor",
    "Calaveras": "https://assessor.calaverasgov.us/",
    "Colusa": "https://www.countyofcolusa.org/148/Assessor",
    "Contra Costa": "https://www.contracosta.ca.gov/191/Assessor",
    "Del Norte": "https://www.dnco.org/departments/assessor/",
    "El Dorado": "https://www.edcgov.us/Government/Assessor",
    "Fresno": "https://www.fresnocountyca.gov/Departments/Assessor-Recorder",
    "Glenn": "https://www.countyofglenn.net/dept/assessor",
    "Humboldt": "https://humboldtgov.org/186/Assessor",
    "Imperial": "https://assessor.imperialcounty.org/",
    "Inyo": "https://www.inyocounty.us/services/assessor",
    "Kern": "https://assessor.kerncounty.com/",
    "Kings": "https://www.countyofkings.com/departments/finance/assessor",
    "Lake": "https://www.lakecountyca.gov/Government/Directory/Assessor_Recorder.htm",
    "Lassen": "https://www.lassencounty.org/dept/assessor/assessor.htm",
    "Los Angeles": "https://portal.assessor.lacounty.gov/",
    "Madera": "https://www.maderacounty.com/government/assessor",
    "Marin": "https://www.marincounty.org/depts/ar",
    "Mariposa": "https://www.mariposacounty.org/167/Assessor-Recorder",
    "Mendocino": "https://www.mendocinocounty.org/government/assessor-county-clerk-recorder",
    "Merced": "https://www.co.merced.ca.us/96/Assessor",
    "Modoc": "https://www.modoccounty.us/assessor/",
    "Mono": "https://monocounty.ca.gov/assessor",
    "Monterey": "https://www.co.monterey.ca.us/government/departments-a-h/assessor",
    "Napa": "https://www.countyofnapa.org/197/Assessor",
    "Nevada": "https://www.mynevadacounty.com/188/Assessor",
    "Orange": "https://www.ocassessor.gov/",
    "Placer": "https://www.placer.ca.gov/1573/Assessor",
    "Plumas": "https://www.plumascounty.us/138/Assessor",
    "Riverside": "https://www.asrclkrec.com/",
    "Sacramento": "https://assessor.saccounty.gov/",
    "San Benito": "https://www.cosb.us/departments/assessor",
    "San Bernardino": "https://www.sbcounty.gov/assessor/",
    "San Diego": "https://arcc.sdcounty.ca.gov/",
    "San Francisco": "https://sfassessor.org/",
    "San Joaquin": "https://www.sjgov.org/department/assessor",
    "San Luis Obispo": "https://www.slocounty.ca.gov/Departments/Assessor.aspx",
    "San Mateo": "https://www.smcacre.org/",
    "Santa Barbara": "https://www.countyofsb.org/505/Assessor",
    "Santa Clara": "https://www.sccassessor.org/",
    "Santa Cruz": "https://www.co.santa-cruz.ca.us/Departments/AssessorHome.aspx",
    "Shasta": "https://www.shastacounty.gov/assessor",
    "Sierra": "https://www.sierracounty.ca.gov/149/Assessor",
    "Siskiyou": "https://www.co.siskiyou.ca.us/assessor",
    "Solano": "https://www.solanocounty.com/depts/assessor/",
    "Sonoma": "https://sonomacounty.ca.gov/administrative-support-and-fiscal-services/clerk-recorder-assessor-registrar-of-voters",
    "Stanislaus": "https://www.stancounty.com/assessor/",
    "Sutter": "https://www.suttercounty.org/government/county-departments/assessor",
    "Tehama": "https://www.tehamacountyca.gov/government/assessor",
    "Trinity": "https://www.trinitycounty.org/Assessor",
    "Tulare": "https://tularecounty.ca.gov/assessor/",
    "Tuolumne": "https://www.tuolumnecounty.ca.gov/175/Assessor",
    "Ventura": "https://assessor.countyofventura.org/",
    "Yolo": "https://www.yolocounty.org/government/general-government-departments/assessor",
    "Yuba": "https://www.yuba.org/departments/assessor/",
}

ZILLOW_SEARCH_URL = "https://www.zillow.com/homes/{query}_rb/"
