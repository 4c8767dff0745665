"""Built-in process template seeded into a fresh database."""

UNIVERSAL_TEMPLATE = {
    "id": "universal-garment-template",
    "name": "Universal Garment Process",
    "article_type": "universal",
    "article_numbers": None,
    "custom": False,
    "operations": [
        {"id": 1, "sequence": 1, "name_en": "Cutting", "name_np": "काटना",
         "machine_type": "cutting", "estimated_time_per_piece": 0.5, "rate": 1.0,
         "skill_level": "medium", "dependencies": []},
        {"id": 2, "sequence": 2, "name_en": "Shoulder Join", "name_np": "काँध जोड्ने",
         "machine_type": "overlock", "estimated_time_per_piece": 2.5, "rate": 2.5,
         "skill_level": "easy", "dependencies": [1]},
        {"id": 3, "sequence": 3, "name_en": "Side Seam", "name_np": "साइड सिम",
         "machine_type": "overlock", "estimated_time_per_piece": 3.0, "rate": 3.0,
         "skill_level": "easy", "dependencies": [2]},
        {"id": 4, "sequence": 4, "name_en": "Hemming", "name_np": "हेम",
         "machine_type": "flatlock", "estimated_time_per_piece": 2.0, "rate": 2.0,
         "skill_level": "medium", "dependencies": [3]},
        {"id": 5, "sequence": 5, "name_en": "Buttonhole", "name_np": "बटनहोल",
         "machine_type": "buttonhole", "estimated_time_per_piece": 1.0, "rate": 1.5,
         "skill_level": "hard", "dependencies": [4]},
        {"id": 6, "sequence": 6, "name_en": "Pressing", "name_np": "आइरन",
         "machine_type": "iron", "estimated_time_per_piece": 1.0, "rate": 1.0,
         "skill_level": "easy", "dependencies": [5]},
    ],
}

SAMPLE_OPERATORS = [
    ("Ram Bahadur", "OP001", "overlock", "medium"),
    ("Sita Devi", "OP002", "flatlock", "easy"),
    ("Hari Prasad", "OP003", "single-needle", "hard"),
    ("Maya Gurung", "OP004", "cutting", "medium"),
    ("Krishna Thapa", "OP005", "multi-skill", "hard"),
]
