TEAM_COUNT = 4
TEAM_SIZE = 6
CAPACITY = TEAM_COUNT * TEAM_SIZE

CATEGORIES = ('monthly', 'casual')
GENDERS = ('female', 'male')
DEFAULT_GENDER = 'male'

# Values written by the first Portuguese-only release
CATEGORY_ALIASES = {'mensalista': 'monthly', 'avulso': 'casual'}
GENDER_ALIASES = {'masculino': 'male', 'feminino': 'female'}

ADMISSION_POLICIES = ('waitlist', 'reject')


def canonical_gender(value) -> str:
    """Map a stored gender (legacy aliases, blanks, junk) onto the balancing groups."""
    if not isinstance(value, str) or not value.strip():
        return DEFAULT_GENDER
    value = value.strip().lower()
    return GENDER_ALIASES.get(value, value)
