# toursim/config.py

# Geography
EARTH_RADIUS_KM = 6371.0
DISTANCE_DECIMALS = 2

# Travel
COMFORT_MIN = 0
COMFORT_MAX = 100
COMFORT_DECAY_PER_100KM = 1.0       # every 100km shaves a comfort point
COMFORT_MAX_DISTANCE_PENALTY = 25.0  # ...but a long trip never costs more than this
MAX_TRAVEL_HOURS_PER_DAY = 10.0      # one rest day per full block of travel hours

# Fatigue
LOW_COMFORT_THRESHOLD = 50
FATIGUE_PENALTY_SCALE = 20          # comfort deficit of 100 -> 20 health points
HEALTH_MIN = 0
HEALTH_MAX = 100

# Environment
ENVIRONMENT_TIMEOUT_SECONDS = 2.0
WORLD_FILE_ENV = "TOURSIM_WORLD_FILE"     # JSON weather + events feed for the web app

# Attributes (0..1000 scale)
ATTRIBUTE_MIN = 0
ATTRIBUTE_MAX = 1000
ATTRIBUTE_MULTIPLIER_FLOOR = 0.25
LEGACY_ATTRIBUTE_SCALE_MAX = 3      # old profiles stored attributes as 1..3

# Booking-time payment
POPULARITY_PAYMENT_RATE = 0.05      # cash per fame point
POPULARITY_PAYMENT_CAP = 5000
SKILL_PAYMENT_RATE = 10             # cash per performance skill point
CHARISMA_PAYMENT_BONUS = 0.40
LOOKS_PAYMENT_BONUS = 0.25
MUSICALITY_PAYMENT_BONUS = 0.20

# Booking-time success chance
SUCCESS_CHANCE_MIN = 12
SUCCESS_CHANCE_MAX = 97
SKILL_SUCCESS_WEIGHT = 0.6          # weighted skill blend (0..100) -> 0..60 points
POPULARITY_SUCCESS_RATE = 1 / 500   # one point per 500 fame
POPULARITY_SUCCESS_CAP = 20
SUCCESS_ATTRIBUTE_BONUS = 0.35

# Settlement
SUCCESS_ATTENDANCE_FACTOR = 0.85
FAILURE_ATTENDANCE_FACTOR = 0.45
ATTENDANCE_VARIANCE = 0.10          # +/- share of attendance decided by the dice
SUCCESS_PAYOUT = 1.0
FAILURE_PAYOUT = 0.5
PAYMENT_FLOOR_SHARE = 0.30
FAN_CONVERSION_RATE = 0.08          # share of the crowd that becomes fans
PRESTIGE_FAN_BONUS = 0.10           # per venue prestige level
BASE_EXPERIENCE = 10
EXPERIENCE_PER_ATTENDEE = 0.05
FAILURE_EXPERIENCE_FACTOR = 0.6
CHARISMA_GROWTH_PER_FAN = 0.02
LOOKS_GROWTH_PER_FAN = 0.01
MUSICALITY_GROWTH_PER_XP = 0.02
