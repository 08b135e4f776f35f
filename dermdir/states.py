"""US state reference data: names, bounding boxes and major cities."""
from __future__ import annotations

from typing import Dict, List, Tuple

# code -> (name, (min_lat, max_lat, min_lng, max_lng), major cities)
_STATE_ROWS: Dict[str, Tuple[str, Tuple[float, float, float, float], List[str]]] = {
    "AL": ("Alabama", (30.2, 35.0, -88.5, -84.9), ["Birmingham", "Montgomery", "Mobile", "Huntsville", "Tuscaloosa"]),
    "AK": ("Alaska", (51.2, 71.4, -179.2, -129.9), ["Anchorage", "Fairbanks", "Juneau", "Wasilla", "Sitka"]),
    "AZ": ("Arizona", (31.3, 37.0, -114.8, -109.0), ["Phoenix", "Tucson", "Mesa", "Chandler", "Scottsdale", "Glendale", "Tempe"]),
    "AR": ("Arkansas", (33.0, 36.5, -94.6, -89.6), ["Little Rock", "Fort Smith", "Fayetteville", "Springdale", "Jonesboro"]),
    "CA": ("California", (32.5, 42.0, -124.5, -114.1), [
        "Los Angeles", "San Francisco", "San Diego", "San Jose", "Sacramento",
        "Oakland", "Fresno", "Long Beach", "Bakersfield", "Anaheim",
        "Santa Ana", "Riverside", "Stockton", "Irvine", "Chula Vista",
        "Fremont", "San Bernardino", "Modesto", "Fontana", "Oxnard",
        "Moreno Valley", "Huntington Beach", "Glendale", "Santa Clarita", "Garden Grove",
    ]),
    "CO": ("Colorado", (37.0, 41.0, -109.1, -102.0), ["Denver", "Colorado Springs", "Aurora", "Fort Collins", "Lakewood", "Thornton", "Boulder"]),
    "CT": ("Connecticut", (41.0, 42.1, -73.7, -71.8), ["Bridgeport", "New Haven", "Hartford", "Stamford", "Waterbury"]),
    "DE": ("Delaware", (38.4, 39.8, -75.8, -75.0), ["Wilmington", "Dover", "Newark", "Middletown", "Bear"]),
    "DC": ("Washington DC", (38.8, 39.0, -77.1, -76.9), ["Washington"]),
    "FL": ("Florida", (24.5, 31.0, -87.6, -80.0), [
        "Jacksonville", "Miami", "Tampa", "Orlando", "St. Petersburg",
        "Hialeah", "Tallahassee", "Fort Lauderdale", "Port St. Lucie", "Cape Coral",
        "Pembroke Pines", "Hollywood", "Miramar", "Gainesville", "Coral Springs",
    ]),
    "GA": ("Georgia", (30.4, 35.0, -85.6, -80.8), ["Atlanta", "Augusta", "Columbus", "Savannah", "Athens", "Sandy Springs", "Macon"]),
    "HI": ("Hawaii", (18.9, 22.2, -160.3, -154.8), ["Honolulu", "Pearl City", "Hilo", "Kailua", "Waipahu"]),
    "ID": ("Idaho", (42.0, 49.0, -117.2, -111.0), ["Boise", "Meridian", "Nampa", "Idaho Falls", "Pocatello"]),
    "IL": ("Illinois", (37.0, 42.5, -91.5, -87.5), ["Chicago", "Aurora", "Rockford", "Joliet", "Naperville", "Springfield", "Peoria"]),
    "IN": ("Indiana", (37.8, 41.8, -88.1, -84.8), ["Indianapolis", "Fort Wayne", "Evansville", "South Bend", "Carmel"]),
    "IA": ("Iowa", (40.4, 43.5, -96.6, -90.1), ["Des Moines", "Cedar Rapids", "Davenport", "Sioux City", "Iowa City"]),
    "KS": ("Kansas", (37.0, 40.0, -102.1, -94.6), ["Wichita", "Overland Park", "Kansas City", "Olathe", "Topeka"]),
    "KY": ("Kentucky", (36.5, 39.1, -89.6, -81.96), ["Louisville", "Lexington", "Bowling Green", "Owensboro", "Covington"]),
    "LA": ("Louisiana", (28.9, 33.0, -94.0, -88.8), ["New Orleans", "Baton Rouge", "Shreveport", "Lafayette", "Lake Charles"]),
    "ME": ("Maine", (43.0, 47.5, -71.1, -66.9), ["Portland", "Lewiston", "Bangor", "South Portland", "Auburn"]),
    "MD": ("Maryland", (37.9, 39.7, -79.5, -75.0), ["Baltimore", "Frederick", "Rockville", "Gaithersburg", "Bowie"]),
    "MA": ("Massachusetts", (41.2, 42.9, -73.5, -69.9), ["Boston", "Worcester", "Springfield", "Cambridge", "Lowell", "Brockton"]),
    "MI": ("Michigan", (41.7, 48.3, -90.4, -82.4), ["Detroit", "Grand Rapids", "Warren", "Sterling Heights", "Ann Arbor", "Lansing"]),
    "MN": ("Minnesota", (43.5, 49.4, -97.2, -89.5), ["Minneapolis", "St. Paul", "Rochester", "Duluth", "Bloomington"]),
    "MS": ("Mississippi", (30.2, 35.0, -91.7, -88.1), ["Jackson", "Gulfport", "Southaven", "Hattiesburg", "Biloxi"]),
    "MO": ("Missouri", (36.0, 40.6, -95.8, -89.1), ["Kansas City", "St. Louis", "Springfield", "Columbia", "Independence"]),
    "MT": ("Montana", (44.4, 49.0, -116.1, -104.0), ["Billings", "Missoula", "Great Falls", "Bozeman", "Butte"]),
    "NE": ("Nebraska", (40.0, 43.0, -104.1, -95.3), ["Omaha", "Lincoln", "Bellevue", "Grand Island", "Kearney"]),
    "NV": ("Nevada", (35.0, 42.0, -120.0, -114.0), ["Las Vegas", "Henderson", "Reno", "North Las Vegas", "Sparks"]),
    "NH": ("New Hampshire", (42.7, 45.3, -72.6, -70.6), ["Manchester", "Nashua", "Concord", "Derry", "Rochester"]),
    "NJ": ("New Jersey", (38.9, 41.4, -75.6, -73.9), ["Newark", "Jersey City", "Paterson", "Elizabeth", "Edison", "Trenton"]),
    "NM": ("New Mexico", (31.3, 37.0, -109.1, -103.0), ["Albuquerque", "Las Cruces", "Rio Rancho", "Santa Fe", "Roswell"]),
    "NY": ("New York", (40.5, 45.0, -79.8, -71.9), [
        "New York", "Buffalo", "Rochester", "Yonkers", "Syracuse",
        "Albany", "New Rochelle", "Mount Vernon", "Schenectady", "Utica",
        "White Plains", "Troy", "Niagara Falls", "Binghamton", "Freeport",
    ]),
    "NC": ("North Carolina", (33.8, 36.6, -84.3, -75.4), ["Charlotte", "Raleigh", "Greensboro", "Durham", "Winston-Salem", "Fayetteville"]),
    "ND": ("North Dakota", (45.9, 49.0, -104.1, -96.6), ["Fargo", "Bismarck", "Grand Forks", "Minot", "West Fargo"]),
    "OH": ("Ohio", (38.4, 42.3, -84.8, -80.5), ["Columbus", "Cleveland", "Cincinnati", "Toledo", "Akron", "Dayton"]),
    "OK": ("Oklahoma", (33.6, 37.0, -103.0, -94.4), ["Oklahoma City", "Tulsa", "Norman", "Broken Arrow", "Lawton"]),
    "OR": ("Oregon", (42.0, 46.3, -124.6, -116.5), ["Portland", "Salem", "Eugene", "Gresham", "Hillsboro", "Beaverton"]),
    "PA": ("Pennsylvania", (39.7, 42.3, -80.5, -74.7), [
        "Philadelphia", "Pittsburgh", "Allentown", "Erie", "Reading",
        "Scranton", "Bethlehem", "Lancaster", "Harrisburg", "Altoona",
        "York", "State College", "Wilkes-Barre",
    ]),
    "RI": ("Rhode Island", (41.1, 42.0, -71.9, -71.1), ["Providence", "Warwick", "Cranston", "Pawtucket", "East Providence"]),
    "SC": ("South Carolina", (32.0, 35.2, -83.4, -78.5), ["Charleston", "Columbia", "North Charleston", "Mount Pleasant", "Rock Hill"]),
    "SD": ("South Dakota", (42.5, 45.9, -104.1, -96.4), ["Sioux Falls", "Rapid City", "Aberdeen", "Brookings", "Watertown"]),
    "TN": ("Tennessee", (35.0, 36.7, -90.3, -81.6), ["Nashville", "Memphis", "Knoxville", "Chattanooga", "Clarksville"]),
    "TX": ("Texas", (25.8, 36.5, -106.7, -93.5), [
        "Houston", "San Antonio", "Dallas", "Austin", "Fort Worth",
        "El Paso", "Arlington", "Corpus Christi", "Plano", "Laredo",
        "Lubbock", "Garland", "Irving", "Amarillo", "Grand Prairie",
        "Brownsville", "McKinney", "Frisco", "Pasadena", "Mesquite",
    ]),
    "UT": ("Utah", (37.0, 42.0, -114.1, -109.0), ["Salt Lake City", "West Valley City", "Provo", "West Jordan", "Orem"]),
    "VT": ("Vermont", (42.7, 45.0, -73.4, -71.5), ["Burlington", "South Burlington", "Rutland", "Barre", "Montpelier"]),
    "VA": ("Virginia", (36.5, 39.5, -83.7, -75.2), ["Virginia Beach", "Norfolk", "Chesapeake", "Richmond", "Newport News", "Alexandria"]),
    "WA": ("Washington", (45.5, 49.0, -124.8, -116.9), ["Seattle", "Spokane", "Tacoma", "Vancouver", "Bellevue", "Kent", "Everett"]),
    "WV": ("West Virginia", (37.2, 40.6, -82.6, -77.7), ["Charleston", "Huntington", "Morgantown", "Parkersburg", "Wheeling"]),
    "WI": ("Wisconsin", (42.5, 47.1, -92.9, -86.8), ["Milwaukee", "Madison", "Green Bay", "Kenosha", "Racine"]),
    "WY": ("Wyoming", (41.0, 45.0, -111.1, -104.1), ["Cheyenne", "Casper", "Laramie", "Gillette", "Rock Springs"]),
}

US_STATES: Dict[str, Dict[str, object]] = {
    code: {
        "code": code,
        "name": name,
        "bounds": {"min_lat": b[0], "max_lat": b[1], "min_lng": b[2], "max_lng": b[3]},
        "major_cities": list(cities),
    }
    for code, (name, b, cities) in _STATE_ROWS.items()
}

VALID_US_STATES = frozenset(US_STATES)


def state_name(code: str) -> str:
    info = US_STATES.get((code or "").upper())
    return str(info["name"]) if info else code


def is_valid_state(code: object) -> bool:
    return isinstance(code, str) and code in VALID_US_STATES


def parse_state_selection(arg: str) -> List[str]:
    """Parse "CA,ny" or "all" into an ordered list of state codes."""
    value = (arg or "").strip()
    if not value:
        raise ValueError("No states selected; pass comma-separated codes or 'all'")
    if value.lower() == "all":
        return sorted(US_STATES)
    codes: List[str] = []
    unknown: List[str] = []
    for part in value.split(","):
        code = part.strip().upper()
        if not code:
            continue
        if code not in VALID_US_STATES:
            unknown.append(code)
        elif code not in codes:
            codes.append(code)
    if unknown:
        raise ValueError("Unknown state code(s): " + ", ".join(unknown))
    if not codes:
        raise ValueError("No states selected; pass comma-separated codes or 'all'")
    return codes
