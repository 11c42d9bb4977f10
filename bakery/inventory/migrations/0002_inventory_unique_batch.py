from django.db import migrations, models


class Migration(migrations.Migration):

    dependencies = [
        ('inventory', '0001_initial'),
    ]

    operations = [
        migrations.AddConstraint(
            model_name='inventoryrecord',
            constraint=models.UniqueConstraint(fields=('product', 'warehouse', 'batch_number'),
                                               name='uniq_inventory_product_wh_batch'),
        ),
    ]
