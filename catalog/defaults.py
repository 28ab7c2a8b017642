"""
Default restroom inspection components.

Used when the configuration file does not define its own catalog.
"""

DEFAULT_COMPONENTS = [
    {
        'id': 'aroma',
        'label': 'Aroma/Odor Level',
        'category': 'aroma',
        'weight': 0.15,
        'required': True,
        'allow_photo': False,
        'rating_labels': {
            1: 'Very Poor - Strong unpleasant odor',
            2: 'Poor - Noticeable odor',
            3: 'Fair - Slight odor',
            4: 'Good - Fresh',
            5: 'Excellent - Very fresh',
        },
    },
    {
        'id': 'floor_cleanliness',
        'label': 'Floor Cleanliness',
        'category': 'visual',
        'weight': 0.12,
        'required': True,
        'allow_photo': True,
        'rating_labels': {
            1: 'Very dirty - Major cleaning needed',
            2: 'Dirty - Visible stains/debris',
            3: 'Moderately clean',
            4: 'Clean - Minor spots only',
            5: 'Spotless',
        },
    },
    {
        'id': 'wall_condition',
        'label': 'Wall & Tile Condition',
        'category': 'visual',
        'weight': 0.08,
        'required': True,
        'allow_photo': True,
        'rating_labels': {
            1: 'Very poor - Damaged/moldy',
            2: 'Poor - Visible stains',
            3: 'Fair - Some marks',
            4: 'Good - Clean',
            5: 'Excellent - Pristine',
        },
    },
    {
        'id': 'sink_condition',
        'label': 'Sink & Faucet Condition',
        'category': 'functional',
        'weight': 0.10,
        'required': True,
        'allow_photo': True,
        'rating_labels': {
            1: 'Not functional',
            2: 'Poor - Clogged/leaking',
            3: 'Fair - Minor issues',
            4: 'Good - Functioning well',
            5: 'Excellent - Perfect condition',
        },
    },
    {
        'id': 'mirror_condition',
        'label': 'Mirror Cleanliness',
        'category': 'visual',
        'weight': 0.06,
        'required': True,
        'allow_photo': False,
        'rating_labels': {
            1: 'Very dirty/damaged',
            2: 'Dirty - Heavy stains',
            3: 'Fair - Some spots',
            4: 'Clean - Minor marks',
            5: 'Spotless',
        },
    },
    {
        'id': 'toilet_condition',
        'label': 'Toilet Bowl Condition',
        'category': 'visual',
        'weight': 0.15,
        'required': True,
        'allow_photo': True,
        'rating_labels': {
            1: 'Very dirty - Unsanitary',
            2: 'Dirty - Visible stains',
            3: 'Fair - Needs cleaning',
            4: 'Clean',
            5: 'Spotless - Sanitized',
        },
    },
    {
        # not every restroom has urinals
        'id': 'urinal_condition',
        'label': 'Urinal Condition (if applicable)',
        'category': 'functional',
        'weight': 0.08,
        'required': False,
        'allow_photo': True,
        'rating_labels': {
            1: 'Very dirty/broken',
            2: 'Dirty',
            3: 'Fair',
            4: 'Clean',
            5: 'Spotless',
        },
    },
    {
        'id': 'soap_availability',
        'label': 'Soap Availability',
        'category': 'availability',
        'weight': 0.08,
        'required': True,
        'allow_photo': False,
        'rating_labels': {
            1: 'Empty - No soap',
            2: 'Almost empty',
            3: 'Half full',
            4: 'Mostly full',
            5: 'Full - Well stocked',
        },
    },
    {
        'id': 'tissue_availability',
        'label': 'Tissue Availability',
        'category': 'availability',
        'weight': 0.08,
        'required': True,
        'allow_photo': False,
        'rating_labels': {
            1: 'Empty - No tissue',
            2: 'Almost empty',
            3: 'Half roll',
            4: 'Good supply',
            5: 'Full - Well stocked',
        },
    },
    {
        'id': 'air_freshener',
        'label': 'Air Freshener Status',
        'category': 'functional',
        'weight': 0.05,
        'required': True,
        'allow_photo': False,
        'rating_labels': {
            1: 'Not working/missing',
            2: 'Empty/weak',
            3: 'Partially effective',
            4: 'Working well',
            5: 'Excellent - Strong & pleasant',
        },
    },
    {
        'id': 'trash_bin_condition',
        'label': 'Trash Bin Condition',
        'category': 'visual',
        'weight': 0.05,
        'required': True,
        'allow_photo': True,
        'rating_labels': {
            1: 'Overflowing - Critical',
            2: 'Nearly full',
            3: 'Half full',
            4: 'Quarter full',
            5: 'Empty - Clean',
        },
    },
]
