from garment_erp import create_app, db, services
from garment_erp.defaults import SAMPLE_OPERATORS
from garment_erp.models import Operator

app = create_app()

with app.app_context():
    db.drop_all()
    db.create_all()

    # Built-in universal process template
    template = services.ensure_default_template()

    # Sample operators, one per common machine
    for name, token_id, machine_type, skill_level in SAMPLE_OPERATORS:
        if Operator.query.filter_by(token_id=token_id).first() is None:
            services.add_operator(name, token_id, machine_type, skill_level)

    print(f"Database initialized with template {template.template_id} "
          f"and {len(SAMPLE_OPERATORS)} operators.")
