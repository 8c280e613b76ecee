"""Frequently used passwords, drawn from public breach compilations.

Entries are lowercase; callers lowercase before checking membership.
"""

COMMON_PASSWORDS = frozenset([
    "123456", "password", "123456789", "12345678", "12345", "1234567", "1234567890",
    "qwerty", "abc123", "111111", "123123", "admin", "letmein", "welcome",
    "monkey", "dragon", "master", "1234", "login", "sunshine", "princess",
    "qwertyuiop", "solo", "passw0rd", "starwars", "121212", "654321", "password1",
    "password123", "michael", "shadow", "superman", "qazwsx", "ashley", "bailey",
    "iloveyou", "trustno1", "000000", "football", "baseball", "qwerty123", "killer",
    "pepper", "joshua", "hunter", "cheese", "whatever", "martin", "ginger",
    "soccer", "batman", "andrew", "jordan", "matrix", "thomas", "123qwe",
    "summer", "internet", "service", "canada", "hello", "ranger", "harley",
    "passpass", "george", "banana", "computer", "corvette", "maggie", "merlin",
    "peanut", "cookie", "nicole", "guitar", "chicken", "buster", "golfer",
    "diamond", "michelle", "jennifer", "jessica", "hannah", "amanda", "chocolate",
    "jackson", "austin", "chelsea", "purple", "orange", "camaro", "maverick",
    "samantha", "charlie", "midnight", "justin", "dallas", "william", "brandon",
    "matthew", "anthony", "robert", "access", "yankees", "thunder",
    "taylor", "muffin", "jasmine", "creative", "coffee", "silver", "secret",
    "fuckoff", "fuckyou", "asshole", "sexy", "hottie", "lovely", "biteme",
    "snoopy", "scooter", "donald", "yankee", "gators", "tigers", "steelers",
    "eagles", "cowboys", "packers", "redsox", "ravens", "broncos", "giants",
    "dolphins", "falcon", "spartan", "badger", "phoenix", "panther", "warrior",
    "password12", "password2", "password3", "pass123", "pass1234", "test123",
    "test1234", "testing", "testing123", "qwerty1", "qwerty12", "abc1234",
    "abcd1234", "aaaa", "aaaaaa", "aaaaaaaa", "1111", "11111", "1111111",
    "11111111", "222222", "333333", "444444", "555555", "666666", "777777",
    "888888", "999999", "147258369", "123321", "321321", "102030", "112233",
    "123654", "654123", "789456123", "159357", "357159", "147852", "258369",
    "asdfgh", "asdfghjkl", "zxcvbnm", "zxcvbn", "poiuytrewq", "mnbvcxz",
    "1q2w3e", "1q2w3e4r", "1q2w3e4r5t", "2wsx3edc", "1qaz2wsx", "qazwsxedc",
    "administrator", "admin123", "admin1234", "root", "root123", "toor",
    "changeme", "default", "letmein123", "welcome1", "welcome123",
    "p@ssw0rd", "p@ssword", "pa$$word", "pa$$w0rd", "passw0rd123",
    "guest", "guest123", "user", "user123", "demo", "demo123",
    "winter", "spring", "autumn", "january", "february",
    "monday", "friday", "sunday", "password!", "password!!", "password1!",
    "qwerty!@", "asdf!@#$", "zxcv!@#$", "qwerasdf", "zaqwsxcde",
    # Long enough to pass the length rule
    "password1234", "qwertyuiop123", "iloveyou1234", "letmein12345",
    "administrator1", "welcome12345", "changeme1234", "passw0rd1234",
])
