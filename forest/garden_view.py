"""pygame window for the minigame. Run with ``python -m forest.garden_view``."""

import logging

import pygame

from forest.minigame import Garden, TileState

logger = logging.getLogger(__name__)

WIDTH, HEIGHT = 800, 600
FPS = 60
TILE_SIZE = 70
OFFSET_X = 50
OFFSET_Y = 100
POPUP_RISE = 40

GRASS = (0x5c, 0xb8, 0x5c)
TILE_BORDER = (0x3d, 0x8b, 0x3d)
STEM = (0x8b, 0x45, 0x13)
LEAVES = (0x90, 0xee, 0x90)
TRUNK = (0x65, 0x43, 0x21)
CANOPY = (0x22, 0x8b, 0x22)
GOLD = (0xff, 0xd7, 0x00)
WHITE = (255, 255, 255)
BLACK = (0, 0, 0)


def tile_center(row, col):
    return OFFSET_X + col * TILE_SIZE, OFFSET_Y + row * TILE_SIZE


def tile_at(garden, x, y):
    # Tiles are centred on their grid point, like the border rectangles.
    col = int((x - OFFSET_X + TILE_SIZE / 2) // TILE_SIZE)
    row = int((y - OFFSET_Y + TILE_SIZE / 2) // TILE_SIZE)
    if 0 <= row < garden.rows and 0 <= col < garden.cols:
        return row, col
    return None


def draw_outlined_text(surface, font, text, color, pos, center=False, alpha=255):
    label = font.render(text, True, color)
    outline = font.render(text, True, BLACK)
    label.set_alpha(alpha)
    outline.set_alpha(alpha)
    rect = label.get_rect(center=pos) if center else label.get_rect(topleft=pos)
    for dx, dy in ((-2, 0), (2, 0), (0, -2), (0, 2)):
        surface.blit(outline, rect.move(dx, dy))
    surface.blit(label, rect)


def draw(surface, garden, fonts):
    surface.fill(GRASS)
    for row in garden.tiles:
        for tile in row:
            x, y = tile_center(tile.row, tile.col)
            border = pygame.Rect(0, 0, TILE_SIZE - 4, TILE_SIZE - 4)
            border.center = (x, y)
            pygame.draw.rect(surface, TILE_BORDER, border, 2)

            if tile.state == TileState.SAPLING:
                pygame.draw.circle(surface, STEM, (x, y + 5), 8)
                pygame.draw.circle(surface, LEAVES, (x, y - 5), 12)
            elif tile.state == TileState.GROWN:
                trunk = pygame.Rect(0, 0, 15, 30)
                trunk.center = (x, y + 5)
                pygame.draw.rect(surface, TRUNK, trunk)
                pygame.draw.circle(surface, CANOPY, (x, y - 15), 25)

    for popup in garden.popups:
        x, y = tile_center(popup.row, popup.col)
        rise = int(POPUP_RISE * popup.progress)
        alpha = int(255 * (1 - popup.progress))
        draw_outlined_text(surface, fonts['popup'], popup.text, GOLD, (x, y - rise), center=True, alpha=alpha)

    draw_outlined_text(surface, fonts['coins'], f'Coins: {garden.coins}', WHITE, (16, 16))


def run(garden=None):
    garden = garden or Garden()
    pygame.init()
    try:
        screen = pygame.display.set_mode((WIDTH, HEIGHT))
        pygame.display.set_caption('Forest')
        clock = pygame.time.Clock()
        fonts = {
            'coins': pygame.font.Font(None, 40),
            'popup': pygame.font.Font(None, 34),
        }

        running = True
        while running:
            dt = clock.tick(FPS) / 1000.0
            for event in pygame.event.get():
                if event.type == pygame.QUIT:
                    running = False
                elif event.type == pygame.KEYDOWN:
                    if event.key == pygame.K_ESCAPE:
                        running = False
                    elif event.key == pygame.K_r:
                        garden.reset()
                        logger.info('Garden reset')
                elif event.type == pygame.MOUSEBUTTONDOWN and event.button == 1:
                    hit = tile_at(garden, *event.pos)
                    if hit:
                        garden.click(*hit)

            garden.tick(dt)
            draw(screen, garden, fonts)
            pygame.display.flip()
    finally:
        pygame.quit()
    return garden.coins


if __name__ == '__main__':
    logging.basicConfig(level=logging.INFO, format='%(asctime)s - %(name)s - %(levelname)s - %(message)s')
    coins = run()
    logger.info('Harvested %d coin(s)', coins)
