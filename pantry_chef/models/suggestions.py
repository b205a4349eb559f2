"""Curated "Chef's Recommendations" shown before any analysis has a result."""

from pantry_chef.models.models import Recipe

_UNSPLASH = "https://images.unsplash.com/photo-{}?auto=format&fit=crop&w=800&q=80"

SUGGESTED_RECIPES: tuple[Recipe, ...] = (
    Recipe(
        id="s1",
        title="Signature Butter Chicken",
        cuisine="Indian",
        description="A velvet-smooth tomato gravy with charred chicken thigh pieces, finished with a touch of fenugreek.",
        ingredients=["Chicken Thighs", "Butter", "San Marzano Tomatoes", "Heavy Cream", "Kashmiri Chili"],
        instructions=[
            "Marinate chicken in yogurt and spices",
            "Grill until charred",
            "Simmer in tomato butter sauce",
            "Garnish with cream",
        ],
        prep_time="45 mins",
        calories="650",
        difficulty="Medium",
        image_url=_UNSPLASH.format("1603894584373-5ac82b2ae398"),
    ),
    Recipe(
        id="s2",
        title="Zesty Lemon Garlic Pasta",
        cuisine="Italian",
        description="Al dente linguine tossed in a vibrant emulsion of cold-pressed olive oil, toasted garlic, and fresh lemon zest.",
        ingredients=["Linguine", "Extra Virgin Olive Oil", "Garlic", "Lemon", "Parsley", "Red Pepper Flakes"],
        instructions=[
            "Boil pasta in salted water",
            "Sauté garlic in oil until golden",
            "Toss pasta with oil and lemon juice",
            "Garnish with parsley",
        ],
        prep_time="15 mins",
        calories="420",
        difficulty="Easy",
        image_url=_UNSPLASH.format("1473093226795-af9932fe5856"),
    ),
    Recipe(
        id="s3",
        title="Mediterranean Quinoa Bowl",
        cuisine="Greek",
        description="A protein-packed bowl featuring fluffy quinoa, crisp cucumbers, and salty feta, drizzled with a balsamic glaze.",
        ingredients=["Quinoa", "Cucumber", "Cherry Tomatoes", "Feta Cheese", "Balsamic Glaze"],
        instructions=[
            "Cook quinoa and let cool",
            "Chop vegetables finely",
            "Combine all ingredients in a bowl",
            "Drizzle with glaze",
        ],
        prep_time="20 mins",
        calories="380",
        difficulty="Easy",
        image_url=_UNSPLASH.format("1512621776951-a57141f2eefd"),
    ),
    Recipe(
        id="s4",
        title="Sesame Ginger Tofu Stir-fry",
        cuisine="Asian",
        description="Crispy tofu cubes tossed with vibrant snap peas and carrots in a savory, aromatic sesame-ginger reduction.",
        ingredients=["Firm Tofu", "Snap Peas", "Carrots", "Soy Sauce", "Ginger", "Sesame Oil"],
        instructions=[
            "Press and cube tofu",
            "Fry tofu until golden and crispy",
            "Stir-fry vegetables quickly",
            "Toss with sauce",
        ],
        prep_time="25 mins",
        calories="310",
        difficulty="Medium",
        image_url=_UNSPLASH.format("1546069901-ba9599a7e63c"),
    ),
)
